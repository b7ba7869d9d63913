"""
Email service module for generating and sending digest emails.

This module provides the EmailService class which handles:
- Generating the HTML body of a user's digest
- Sending emails via SMTP and reporting whether delivery succeeded
"""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from news_digest.models import Article

logger = logging.getLogger(__name__)

DIGEST_SUBJECT = "Your Tech Digest"


class EmailService:
    """Service for handling email generation and sending."""

    _EMAIL_STYLES = {
        "body": "font-family: Arial, sans-serif; line-height: 1.6; color: #333; background-color: #f8f8f8; padding: 20px;",
        "container": "max-width: 600px; margin: 0 auto; background-color: #fff; padding: 30px; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1);",
        "h1": "color: #2c3e50; border-bottom: 2px solid #3498db; padding-bottom: 10px; margin-top: 0;",
        "h2": "color: #3498db; margin-top: 30px; font-size: 1.2em;",
        "article": "margin-bottom: 25px; padding-bottom: 15px; border-bottom: 1px solid #eee; overflow: hidden;",
        "image": "float: right; margin-left: 20px; margin-bottom: 10px; width: 120px; height: 80px; object-fit: cover; border-radius: 4px; border: 1px solid #ddd;",
        "content": "overflow: hidden;",
        "link": "text-decoration: none; color: #1a0dab; font-size: 1.1em; font-weight: bold; display: block; margin-bottom: 5px;",
        "source": "font-size: 0.85em; color: #555; margin-top: 5px;",
        "footer": "font-size: 0.8em; color: #888; margin-top: 30px; text-align: center; border-top: 1px solid #eee; padding-top: 15px;",
    }

    def __init__(
        self,
        smtp_server: str,
        smtp_port: int,
        sender_email: str,
        sender_password: str,
        from_address: Optional[str] = None,
        timeout: float = 30,
    ):
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.sender_email = sender_email
        self.sender_password = sender_password
        self.from_address = from_address or sender_email
        self.timeout = timeout

    def _render_article(self, article: Article) -> str:
        """Renders a single article entry."""
        image_html = ""
        if article.get("image_url"):
            image_html = (
                f"<img src=\"{html.escape(article['image_url'] or '')}\" alt=\"\""
                f" style=\"{self._EMAIL_STYLES['image']}\" />"
            )

        title = html.escape(article.get("title") or "No Title")
        source_html = ""
        if article.get("source"):
            source_html = (
                f"<div style=\"{self._EMAIL_STYLES['source']}\">"
                f"Source: {html.escape(article['source'])}</div>"
            )

        return f"""
            <div style="{self._EMAIL_STYLES['article']}">
                {image_html}
                <div style="{self._EMAIL_STYLES['content']}">
                    <a href="{html.escape(article['url'])}" target="_blank"
                       style="{self._EMAIL_STYLES['link']}">{title}</a>
                    {source_html}
                </div>
            </div>
            """

    def generate_email_html(self, articles: List[Article], lookback_days: int = 7) -> str:
        """Generates the HTML content for a digest email."""
        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head><meta charset="utf-8"></head>
        <body style="{self._EMAIL_STYLES['body']}">
            <div style="{self._EMAIL_STYLES['container']}">
                <h1 style="{self._EMAIL_STYLES['h1']}">{DIGEST_SUBJECT}</h1>
                <h2 style="{self._EMAIL_STYLES['h2']}">Highlights from the Last {lookback_days} Days</h2>
        """

        for article in articles:
            html_content += self._render_article(article)

        html_content += (
            f"<div style=\"{self._EMAIL_STYLES['footer']}\">"
            "<p>Generated by Aggregator Bot</p></div>"
        )
        html_content += "</div></body></html>"
        return html_content

    def send_email(
        self, recipient: str, articles: List[Article], lookback_days: int = 7
    ) -> bool:
        """Formats and sends a digest. Returns True only if the send succeeded."""
        if not articles:
            logger.info("No articles to send to %s.", recipient)
            return False

        html_content = self.generate_email_html(articles, lookback_days)

        msg = MIMEMultipart()
        msg["From"] = self.from_address
        msg["To"] = recipient
        msg["Subject"] = DIGEST_SUBJECT
        msg.attach(MIMEText(html_content, "html", "utf-8"))

        try:
            server = smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout)
            try:
                server.starttls()
                server.login(self.sender_email, self.sender_password)
                server.send_message(msg)
            finally:
                server.quit()
            logger.info("Sent digest with %d articles to %s.", len(articles), recipient)
            return True
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Email to %s failed: %s", recipient, e)
            return False

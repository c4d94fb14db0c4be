"""
이메일 전송 서비스
"""

from typing import Optional
from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType
from jinja2 import Template
import logging
from ..config import settings

logger = logging.getLogger(__name__)


INVITATION_TEMPLATE = Template("""
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>{{ app_name }} invitation</title>
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            line-height: 1.6;
            color: #333;
            margin: 0;
            padding: 0;
            background-color: #f4f6f9;
        }
        .container {
            max-width: 600px;
            margin: 20px auto;
            background: white;
            border-radius: 16px;
            overflow: hidden;
            box-shadow: 0 10px 30px rgba(0,0,0,0.1);
        }
        .header {
            background: linear-gradient(135deg, #0ea5e9 0%, #0369a1 100%);
            color: white;
            padding: 40px 30px;
            text-align: center;
        }
        .content {
            padding: 40px 30px;
        }
        .button {
            display: inline-block;
            background: #0369a1;
            color: white !important;
            padding: 14px 28px;
            border-radius: 8px;
            text-decoration: none;
            font-weight: 600;
        }
        .footer {
            text-align: center;
            padding: 30px;
            background: #f8fafc;
            color: #64748b;
            font-size: 14px;
            border-top: 1px solid #e2e8f0;
        }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{{ app_name }}</h1>
        </div>

        <div class="content">
            <p>Hello,</p>

            <p>{% if inviter_name %}{{ inviter_name }} has invited you{% else %}You have been invited{% endif %} to join {{ app_name }}.</p>

            <p style="text-align: center; margin: 32px 0;">
                <a class="button" href="{{ invitation_url }}">Accept invitation</a>
            </p>

            <p>This invitation expires on {{ expires_at }}.</p>

            <p>If you did not expect this invitation, you can ignore this email.</p>
        </div>

        <div class="footer">
            <p>{{ app_name }}</p>
        </div>
    </div>
</body>
</html>
""")


class EmailService:
    """이메일 전송 서비스"""

    def __init__(self):
        """이메일 서비스 초기화"""
        try:
            # 설정에서 이메일 정보 가져오기
            if not all(
                [settings.mail_username, settings.mail_password, settings.mail_from]
            ):
                logger.warning("이메일 설정이 없습니다. 이메일 기능이 비활성화됩니다.")
                self.fastmail = None
                return

            self.conf = ConnectionConfig(
                MAIL_USERNAME=settings.mail_username,
                MAIL_PASSWORD=settings.mail_password,
                MAIL_FROM=settings.mail_from,
                MAIL_PORT=settings.mail_port,
                MAIL_SERVER=settings.mail_server,
                MAIL_FROM_NAME=settings.mail_from_name,
                MAIL_STARTTLS=settings.mail_starttls,
                MAIL_SSL_TLS=settings.mail_ssl_tls,
                USE_CREDENTIALS=True,
                VALIDATE_CERTS=True,
            )

            self.fastmail = FastMail(self.conf)
            logger.info("이메일 서비스 초기화 완료")

        except Exception as e:
            logger.warning(f"이메일 서비스 초기화 실패: {e}")
            self.fastmail = None

    async def send_user_invitation_email(
        self,
        email: str,
        invitation_url: str,
        expires_at: str,
        inviter_name: Optional[str] = None,
    ) -> bool:
        """가입 초대 이메일 전송"""
        try:
            if not self.fastmail:
                logger.warning("이메일 서비스가 초기화되지 않음")
                return False

            html_content = INVITATION_TEMPLATE.render(
                app_name=settings.app_name,
                inviter_name=inviter_name,
                invitation_url=invitation_url,
                expires_at=expires_at,
            )

            message = MessageSchema(
                subject=f"You're invited to {settings.app_name}",
                recipients=[email],
                body=html_content,
                subtype=MessageType.html,
            )

            await self.fastmail.send_message(message)
            logger.info(f"초대 이메일 전송 성공: {email}")
            return True

        except Exception as e:
            logger.error(f"초대 이메일 전송 실패: {email}, 오류: {e}")
            return False

    def is_configured(self) -> bool:
        """이메일 서비스 설정 여부 확인"""
        return self.fastmail is not None


# 전역 이메일 서비스 인스턴스
email_service = EmailService()

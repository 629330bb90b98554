"""
报价单投递协作方接口

PDF 生成与邮件发送由外部实现注入 QuoteService。
"""
from typing import Optional, Protocol

from quote_engine.schemas.quote import QuoteDetailResponse


class DocumentRenderer(Protocol):
    async def render_quote_pdf(self, quote: QuoteDetailResponse) -> bytes:
        ...


class MailSender(Protocol):
    async def send_email(
        self,
        recipient: str,
        subject: str,
        body: str,
        attachment: Optional[bytes] = None,
        cc: Optional[list] = None
    ) -> None:
        """发送失败时抛出异常"""
        ...

"""
Webhook 通知服务

生命周期事件在事务提交后异步投递，不阻塞调用方，
投递失败只记录日志，不影响已完成的业务操作。
"""
import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

import httpx
from loguru import logger

from quote_engine.core.config import settings

QUOTE_CREATED = "quote.created"
QUOTE_SUBMITTED = "quote.submitted"
QUOTE_APPROVED = "quote.approved"
QUOTE_REJECTED = "quote.rejected"
QUOTE_SENT = "quote.sent"


class WebhookService:
    """Webhook 通知服务"""

    def __init__(
        self,
        urls: Optional[List[str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.urls = list(settings.WEBHOOK_URLS if urls is None else urls)
        self.timeout = timeout or settings.WEBHOOK_TIMEOUT_SECONDS
        self.transport = transport
        self._tasks: Set[asyncio.Task] = set()

    def notify(self, event_type: str, payload: Dict[str, Any]) -> Optional[asyncio.Task]:
        """调度一次投递并立即返回"""
        if not self.urls:
            return None

        task = asyncio.create_task(self._deliver(event_type, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, event_type: str, payload: Dict[str, Any]) -> None:
        body = {
            "event": event_type,
            "timestamp": datetime.now().isoformat(),
            "data": payload,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for url in self.urls:
                try:
                    response = await client.post(url, json=body)
                    response.raise_for_status()
                    logger.debug(f"Webhook 已投递: {event_type} -> {url}")
                except httpx.HTTPError as e:
                    logger.warning(f"Webhook 投递失败: {event_type} -> {url}: {e}")

    async def drain(self) -> None:
        """等待所有进行中的投递完成"""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


webhook_service = WebhookService()

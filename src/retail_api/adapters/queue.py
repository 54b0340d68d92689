"""Queue primitive: FIFO text messages with non-destructive peek."""
import asyncio
import itertools
import json
import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from retail_api.adapters.aws_clients import get_client
from retail_api.config.settings import Settings

logger = logging.getLogger(__name__)

# SQS hands out at most 10 messages per receive call
SQS_MAX_BATCH = 10
# How long peeked SQS messages stay hidden before their visibility is restored
PEEK_VISIBILITY_TIMEOUT = 30
# A short poll samples only some SQS servers and can come back empty while
# messages are pending, so the first receive of a peek long-polls briefly
PEEK_FIRST_WAIT_SECONDS = 1


class BaseQueue:
    """Base class for queue handling (to be extended by specific implementations)"""

    def __init__(self, queue_name: str):
        self.queue_name = queue_name

    async def create_if_not_exists(self) -> None:
        raise NotImplementedError

    async def send_message(self, message: str) -> None:
        raise NotImplementedError

    async def peek_messages(self, max_count: int) -> List[str]:
        """Return up to ``max_count`` pending messages, oldest first, leaving them queued."""
        raise NotImplementedError


class LocalQueue(BaseQueue):
    """Handles local queue using file system for IPC"""

    _sequence = itertools.count()

    def __init__(self, queue_name: str, storage_dir: Path):
        super().__init__(queue_name)
        self.queue_dir = Path(storage_dir) / "queue_data" / queue_name
        logger.info("LocalQueue initialized at: %s", self.queue_dir)

    def _write(self, filename: str, message: str) -> None:
        with open(self.queue_dir / filename, "w", encoding="utf-8") as f:
            json.dump(
                {"message": message, "inserted_at": datetime.now(timezone.utc).isoformat()},
                f,
            )

    def _read_oldest(self, max_count: int) -> List[str]:
        messages = []
        for message_file in sorted(self.queue_dir.glob("*.json"))[:max_count]:
            with open(message_file, "r", encoding="utf-8") as f:
                messages.append(json.load(f)["message"])
        return messages

    async def create_if_not_exists(self) -> None:
        await asyncio.to_thread(self.queue_dir.mkdir, parents=True, exist_ok=True)

    async def send_message(self, message: str) -> None:
        # Names sort in insertion order: nanosecond timestamp, pid, then a per-process counter
        filename = f"{time.time_ns():020d}_{os.getpid():08d}_{next(self._sequence):08d}.json"
        await asyncio.to_thread(self._write, filename, message)
        logger.info("Added message to queue %s: %s", self.queue_name, filename)

    async def peek_messages(self, max_count: int) -> List[str]:
        return await asyncio.to_thread(self._read_oldest, max_count)


class SQSQueue(BaseQueue):
    """Handles AWS SQS queue"""

    def __init__(self, queue_name: str, sqs_client: Any, queue_url: Optional[str] = None):
        super().__init__(queue_name)
        self.sqs = sqs_client
        self._queue_url = queue_url
        logger.info(f"SQSQueue initialized for queue: {queue_name}")

    @property
    def queue_url(self) -> str:
        if self._queue_url is None:
            self._queue_url = self.sqs.get_queue_url(QueueName=self.queue_name)["QueueUrl"]
        return self._queue_url

    def _create_queue(self) -> None:
        self._queue_url = self.sqs.create_queue(QueueName=self.queue_name)["QueueUrl"]
        logger.info(f"SQS queue ready: {self._queue_url}")

    def _send(self, message: str) -> None:
        response = self.sqs.send_message(QueueUrl=self.queue_url, MessageBody=message)
        logger.info(f"Message added to SQS queue with ID: {response.get('MessageId')}")

    def _peek(self, max_count: int) -> List[str]:
        # SQS has no peek: receive with a short visibility timeout, then make
        # every received message visible again.
        received: List[dict] = []
        try:
            while len(received) < max_count:
                response = self.sqs.receive_message(
                    QueueUrl=self.queue_url,
                    MaxNumberOfMessages=min(SQS_MAX_BATCH, max_count - len(received)),
                    VisibilityTimeout=PEEK_VISIBILITY_TIMEOUT,
                    WaitTimeSeconds=0 if received else PEEK_FIRST_WAIT_SECONDS,
                )
                messages = response.get("Messages", [])
                if not messages:
                    break
                received.extend(messages)
        finally:
            for message in received:
                self.sqs.change_message_visibility(
                    QueueUrl=self.queue_url,
                    ReceiptHandle=message["ReceiptHandle"],
                    VisibilityTimeout=0,
                )
        return [message["Body"] for message in received]

    async def create_if_not_exists(self) -> None:
        await asyncio.to_thread(self._create_queue)

    async def send_message(self, message: str) -> None:
        await asyncio.to_thread(self._send, message)

    async def peek_messages(self, max_count: int) -> List[str]:
        return await asyncio.to_thread(self._peek, max_count)


class QueueFactory:
    """Factory to initialize the correct queue handler based on deployment mode"""

    @staticmethod
    def get_queue_handler(settings: Settings) -> BaseQueue:
        queue_classes = {
            "local-dev": LocalQueue,
            "aws-mock": SQSQueue,
            "aws-prod": SQSQueue,
        }

        deployment_mode = settings.deployment_mode
        if deployment_mode not in queue_classes:
            raise ValueError(
                f"Invalid deployment_mode: {deployment_mode}. "
                f"Choose from {list(queue_classes.keys())}"
            )

        logger.info(f"Creating queue handler for mode: {deployment_mode}")
        if queue_classes[deployment_mode] is SQSQueue:
            return SQSQueue(settings.queue_name, get_client(settings, "sqs"))
        return LocalQueue(settings.queue_name, Path(settings.storage_dir))

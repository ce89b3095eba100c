from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import InvalidOperation
from typing import Any

from ..constants import LOAD_PRICE_JOB
from ..domain import Price
from ..logger import get_logger
from .store import InMemoryPriceStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class Job:
    kind: str
    payload: dict[str, Any]


class BasePriceQueue(ABC):
    """Outbound queue used to persist computed prices."""

    @abstractmethod
    async def enqueue(self, job: str, payload: dict[str, Any]) -> None:
        """Submit a job without waiting for it to be processed."""
        ...


class InMemoryPriceQueue(BasePriceQueue):
    """Unbounded asyncio queue; ``run_price_loader`` consumes it."""

    def __init__(self) -> None:
        self.jobs: asyncio.Queue[Job] = asyncio.Queue()

    async def enqueue(self, job: str, payload: dict[str, Any]) -> None:
        self.jobs.put_nowait(Job(kind=job, payload=payload))
        logger.debug("Enqueued %s job (%d pending)", job, self.jobs.qsize())


async def run_price_loader(queue: InMemoryPriceQueue, store: InMemoryPriceStore) -> None:
    """Consume ``load.price`` jobs into the store until cancelled."""
    while True:
        job = await queue.jobs.get()
        try:
            if job.kind != LOAD_PRICE_JOB:
                logger.warning("Ignoring unknown job kind %s", job.kind)
                continue
            await store.save(Price.from_payload(job.payload))
        except (KeyError, ValueError, InvalidOperation) as e:
            logger.error("Dropping malformed %s job: %s", job.kind, e)
        finally:
            queue.jobs.task_done()

"""Prometheus metrics endpoint for con-consumer."""

from __future__ import annotations
from collections.abc import Iterator
import logging
from typing import TYPE_CHECKING, Optional
from prometheus_client import REGISTRY, CollectorRegistry, start_http_server
from prometheus_client.core import GaugeMetricFamily, Metric

if TYPE_CHECKING:
    from con_consumer.consumer_main import Consumer

lgr = logging.getLogger("con-consumer")


class ConsumerCollector:
    """Reports what a :class:`Consumer` targets and currently holds.

    Values are read when scraped; the consumer itself never touches metrics.
    Process CPU time, resident memory and interpreter GC statistics come from
    the collectors prometheus_client registers by default.
    """

    def __init__(self, consumer: Consumer) -> None:
        self.consumer = consumer

    def collect(self) -> Iterator[Metric]:
        consumer = self.consumer
        targets = consumer.targets
        yield GaugeMetricFamily(
            "consumer_target_cpu_cores",
            "CPU cores worth of CPU time requested.",
            value=targets.cpu_cores or 0,
        )
        yield GaugeMetricFamily(
            "consumer_target_memory_bytes",
            "Memory requested at startup.",
            value=consumer.memory.megabytes * consumer.memory.chunk_size,
        )
        yield GaugeMetricFamily(
            "consumer_target_extra_memory_bytes",
            "Extra memory requested after the delay.",
            value=consumer.extra_memory.holder.megabytes
            * consumer.extra_memory.holder.chunk_size,
        )
        yield GaugeMetricFamily(
            "consumer_cpu_workers_running",
            "CPU burner threads currently running.",
            value=sum(1 for b in consumer.cpu_burners if b.is_running),
        )
        allocated = GaugeMetricFamily(
            "consumer_memory_allocated_bytes",
            "Memory currently allocated by the consumer.",
            labels=["wave"],
        )
        allocated.add_metric(["immediate"], consumer.memory.allocated_bytes)
        allocated.add_metric(["extra"], consumer.extra_memory.allocated_bytes)
        yield allocated
        yield GaugeMetricFamily(
            "consumer_cancelled",
            "1 once cancellation was requested.",
            value=int(consumer.cancel.is_cancelled),
        )


def start_metrics_server(
    port: int, address: str, registry: CollectorRegistry = REGISTRY
) -> None:
    start_http_server(port, addr=address, registry=registry)
    lgr.info("Publishing metrics on http://%s:%d/metrics", address, port)


def register_consumer(
    consumer: Consumer, registry: Optional[CollectorRegistry] = None
) -> ConsumerCollector:
    collector = ConsumerCollector(consumer)
    (REGISTRY if registry is None else registry).register(collector)
    return collector


def unregister_consumer(
    collector: ConsumerCollector, registry: Optional[CollectorRegistry] = None
) -> None:
    (REGISTRY if registry is None else registry).unregister(collector)

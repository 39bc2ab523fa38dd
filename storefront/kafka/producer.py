"""
Kafka producer for product change events
"""
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from confluent_kafka import Producer
from storefront.config import Settings

logger = logging.getLogger(__name__)

EVENT_VERSION = 1


def product_event(event_type: str, product_id: str, supplier_id: str, **data: Any) -> Dict[str, Any]:
    """Envelope shared by every product event"""
    return {
        "type": event_type,
        "version": EVENT_VERSION,
        "eventId": str(uuid.uuid4()),
        "occurredAt": datetime.now(timezone.utc).isoformat(),
        "productId": product_id,
        "supplierId": supplier_id,
        "data": data,
    }


class ProductEventProducer:
    """Publishes product lifecycle events, keyed by product id"""

    def __init__(self, settings: Settings, producer: Optional[Producer] = None):
        self.bootstrap_servers = settings.kafka_bootstrap_servers
        self.topic = settings.kafka_events_topic
        self.producer = producer or Producer({
            'bootstrap.servers': self.bootstrap_servers,
            'client.id': settings.app_name,
        })

    def _send(self, event: Dict[str, Any]) -> None:
        # Same key for every event of a product keeps them on one partition, in order
        self.producer.produce(
            self.topic,
            key=event["productId"],
            value=json.dumps(event).encode("utf-8"),
            headers={"event-type": event["type"]},
            on_delivery=self._on_delivery
        )
        self.producer.poll(0)
        logger.info(f"Queued {event['type']} for product {event['productId']} on {self.topic}")

    @staticmethod
    def _on_delivery(err, msg):
        if err is not None:
            logger.error(f"Delivery of {msg.key()} to {msg.topic()} failed: {err}")
        else:
            logger.debug(f"Delivered to {msg.topic()} [{msg.partition()}] @ {msg.offset()}")

    def publish_product_created(self, product_id: str, supplier_id: str, name: str, image_count: int):
        self._send(product_event("PRODUCT_CREATED", product_id, supplier_id, name=name, imageCount=image_count))

    def publish_product_updated(self, product_id: str, supplier_id: str, added_images: int):
        self._send(product_event("PRODUCT_UPDATED", product_id, supplier_id, addedImages=added_images))

    def publish_product_deleted(self, product_id: str, supplier_id: str):
        self._send(product_event("PRODUCT_DELETED", product_id, supplier_id))

    def flush(self, timeout: float = 5.0):
        remaining = self.producer.flush(timeout)
        if remaining:
            logger.warning(f"{remaining} product event(s) still undelivered after flush")


class NoOpEventProducer:
    """Stand-in used when Kafka is disabled"""

    def publish_product_created(self, *args, **kwargs):
        pass

    def publish_product_updated(self, *args, **kwargs):
        pass

    def publish_product_deleted(self, *args, **kwargs):
        pass

    def flush(self, *args, **kwargs):
        pass


def build_event_producer(settings: Settings):
    """Kafka producer when enabled, otherwise a no-op stand-in"""
    if not settings.kafka_enabled:
        logger.info("Kafka disabled; product events will not be published")
        return NoOpEventProducer()
    try:
        producer = ProductEventProducer(settings)
    except Exception as e:
        logger.warning(f"Failed to initialize Kafka producer: {e}. Events will not be published.")
        return NoOpEventProducer()
    logger.info(f"Initialized Kafka producer for {producer.bootstrap_servers}")
    return producer

from __future__ import annotations

import json
import logging
from typing import Any

from google.cloud import pubsub_v1

from .models.draft import Draft
from .persistence import SaveResult

logger = logging.getLogger(__name__)


class PubSubClient:
    """Publishes site lifecycle events for the public renderers."""

    def __init__(self, project_id: str, *, site_published_topic: str = "site-published", publisher=None) -> None:
        self.project_id = project_id
        self.site_published_topic = site_published_topic
        self.publisher = publisher or pubsub_v1.PublisherClient()

    def publish(
        self,
        topic_id: str,
        message: dict[str, Any],
        *,
        attributes: dict[str, str] | None = None,
    ) -> str:
        """Publish a JSON message to a Pub/Sub topic.

        Args:
            topic_id: The topic ID (e.g., "site-published")
            message: The message payload as a dictionary
            attributes: Optional message attributes

        Returns:
            Message ID from Pub/Sub
        """
        topic_path = self.publisher.topic_path(self.project_id, topic_id)
        data = json.dumps(message).encode("utf-8")
        future = self.publisher.publish(topic_path, data, **(attributes or {}))
        message_id = future.result()

        logger.info(
            "Published message to Pub/Sub",
            extra={
                "topic_id": topic_id,
                "message_id": message_id,
                "attributes": attributes,
            },
        )
        return message_id

    def publish_site_published(self, draft: Draft, result: SaveResult) -> str:
        """Announce that a site went live.

        Matches the ``PublishHook`` signature so it can be handed straight to
        ``BuilderSession``.
        """
        message = {
            "entity_id": result.entity_id,
            "product": draft.product.value,
            "slug": result.slug,
            "public_url": draft.publish.public_url or result.public_url,
            "event_code": draft.publish.event_code,
        }
        attributes = {
            "entity_id": result.entity_id,
            "product": draft.product.value,
            "event_type": "site_published",
        }
        return self.publish(self.site_published_topic, message, attributes=attributes)


__all__ = ["PubSubClient"]

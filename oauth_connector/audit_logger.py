"""
Audit trail for OAuth flow events.

This module records each authorize and callback outcome per integration so
operators can see when an integration was authorized, when a request was
rejected, and which exchanges failed.
"""

import logging
import time
import threading
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
from dataclasses import dataclass, asdict
from enum import Enum


MAX_EVENTS = 10000


class AuditEventType(Enum):
    """Types of audit events that can be logged."""
    OAUTH_INITIATED = "oauth_initiated"
    OAUTH_REJECTED = "oauth_rejected"
    OAUTH_COMPLETED = "oauth_completed"
    OAUTH_FAILED = "oauth_failed"


@dataclass
class AuditEvent:
    """Represents a single audit event."""
    event_id: str
    event_type: AuditEventType
    timestamp: str
    integration: Optional[str]
    user_ip: Optional[str]
    user_agent: Optional[str]
    success: bool
    details: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert audit event to dictionary."""
        result = asdict(self)
        result['event_type'] = self.event_type.value
        return result


class AuditLogger:
    """In-memory, bounded log of flow events mirrored to the ``audit`` logger."""

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.AuditLogger")
        self.events: List[AuditEvent] = []
        self.storage_lock = threading.Lock()
        self.event_counter = 0

        self._setup_audit_logging()

    def _setup_audit_logging(self):
        audit_logger = logging.getLogger('audit')
        audit_logger.setLevel(logging.INFO)

        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - AUDIT - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)

        if not audit_logger.handlers:
            audit_logger.addHandler(handler)

        self.audit_logger = audit_logger

    def _generate_event_id(self) -> str:
        with self.storage_lock:
            self.event_counter += 1
            return f"audit_{int(time.time())}_{self.event_counter}"

    def log_event(self, event_type: AuditEventType, integration: Optional[str] = None,
                  user_ip: Optional[str] = None, user_agent: Optional[str] = None,
                  success: bool = True, details: Optional[Dict[str, Any]] = None) -> str:
        """
        Log an audit event.

        Args:
            event_type: Type of audit event
            integration: Settings name of the integration involved
            user_ip: Optional user IP address
            user_agent: Optional user agent string
            success: Whether the operation was successful
            details: Optional additional event details

        Returns:
            Generated event ID
        """
        event_id = self._generate_event_id()
        timestamp = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')

        event = AuditEvent(
            event_id=event_id,
            event_type=event_type,
            timestamp=timestamp,
            integration=integration,
            user_ip=user_ip,
            user_agent=user_agent,
            success=success,
            details=details or {}
        )

        with self.storage_lock:
            self.events.append(event)
            if len(self.events) > MAX_EVENTS:
                self.events = self.events[-MAX_EVENTS:]

        self.audit_logger.info(
            f"Event: {event_type.value} | Integration: {integration} | Success: {success}"
        )

        return event_id

    def get_integration_audit_log(self, integration: str, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Get the most recent events for one integration.

        Args:
            integration: Settings name of the integration
            limit: Maximum number of events to return

        Returns:
            List of audit events, most recent first
        """
        integration_events = []

        with self.storage_lock:
            for event in reversed(self.events):
                if event.integration == integration:
                    integration_events.append(event.to_dict())
                    if len(integration_events) >= limit:
                        break

        return integration_events

    def get_audit_statistics(self) -> Dict[str, Any]:
        """Summarize recorded events by type and integration."""
        with self.storage_lock:
            total_events = len(self.events)
            event_types = {}
            integrations = {}
            success_count = 0

            for event in self.events:
                event_type = event.event_type.value
                event_types[event_type] = event_types.get(event_type, 0) + 1

                if event.integration:
                    integrations[event.integration] = integrations.get(event.integration, 0) + 1

                if event.success:
                    success_count += 1

        success_rate = (success_count / total_events * 100) if total_events > 0 else 0

        return {
            'total_events': total_events,
            'success_rate_percent': round(success_rate, 2),
            'event_types': event_types,
            'integrations': integrations
        }

    def clear(self) -> None:
        with self.storage_lock:
            self.events = []


# Global audit logger instance
audit_logger = AuditLogger()


def get_audit_logger() -> AuditLogger:
    """Get the global audit logger instance."""
    return audit_logger

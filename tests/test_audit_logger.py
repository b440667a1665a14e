"""
Unit tests for the flow audit trail.
"""

import unittest
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from oauth_connector.audit_logger import AuditLogger, AuditEventType


class TestAuditLogger(unittest.TestCase):
    """Test cases for AuditLogger."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.audit_logger = AuditLogger()

    def test_log_event(self):
        """Test events are recorded with their details."""
        event_id = self.audit_logger.log_event(
            AuditEventType.OAUTH_INITIATED,
            integration='acme',
            user_ip='127.0.0.1',
            details={'stage': 'authorize'}
        )

        events = self.audit_logger.get_integration_audit_log('acme')
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0]['event_id'], event_id)
        self.assertEqual(events[0]['event_type'], 'oauth_initiated')
        self.assertEqual(events[0]['user_ip'], '127.0.0.1')
        self.assertEqual(events[0]['details'], {'stage': 'authorize'})

    def test_integration_log_most_recent_first(self):
        """Test per-integration logs are filtered, ordered and limited."""
        self.audit_logger.log_event(AuditEventType.OAUTH_INITIATED, integration='acme')
        self.audit_logger.log_event(AuditEventType.OAUTH_REJECTED, integration='other', success=False)
        self.audit_logger.log_event(AuditEventType.OAUTH_COMPLETED, integration='acme')

        events = self.audit_logger.get_integration_audit_log('acme')
        self.assertEqual([e['event_type'] for e in events], ['oauth_completed', 'oauth_initiated'])
        self.assertEqual(len(self.audit_logger.get_integration_audit_log('acme', limit=1)), 1)

    def test_statistics(self):
        """Test the summary counts events by type and integration."""
        self.audit_logger.log_event(AuditEventType.OAUTH_COMPLETED, integration='acme')
        self.audit_logger.log_event(AuditEventType.OAUTH_FAILED, integration='acme', success=False)

        stats = self.audit_logger.get_audit_statistics()
        self.assertEqual(stats['total_events'], 2)
        self.assertEqual(stats['success_rate_percent'], 50.0)
        self.assertEqual(stats['event_types'], {'oauth_completed': 1, 'oauth_failed': 1})
        self.assertEqual(stats['integrations'], {'acme': 2})

    def test_clear(self):
        """Test clearing removes all events."""
        self.audit_logger.log_event(AuditEventType.OAUTH_INITIATED, integration='acme')
        self.audit_logger.clear()

        self.assertEqual(self.audit_logger.get_audit_statistics()['total_events'], 0)


if __name__ == '__main__':
    unittest.main()

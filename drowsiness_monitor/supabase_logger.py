"""
Supabase Cloud Integration Module
Stores drowsiness events for a vehicle in Supabase

Table:
- drowsiness_events: one row per persisted state change
  (vehicle_id, drowsiness_level, confidence, eye_aspect_ratio, alert_triggered)
"""

import logging
import os
import threading
from typing import Any, Dict, Optional

from supabase import Client, create_client

from drowsiness_monitor.config import SUPABASE_EVENTS_TABLE

logger = logging.getLogger(__name__)


class SupabaseLogger:
    """
    Logs drowsiness events to Supabase.

    Writes are fire-and-forget: with background=True each insert runs on a
    daemon thread, and failures are logged, never raised or retried.
    """

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        client: Optional[Client] = None,
        table: str = SUPABASE_EVENTS_TABLE,
        background: bool = True,
    ):
        """
        Initialize Supabase logger.

        Args:
            supabase_url: Supabase project URL (or from SUPABASE_URL env var)
            supabase_key: Supabase anon key (or from SUPABASE_KEY env var)
            client: Pre-built Supabase client (skips credential lookup)
            table: Table receiving drowsiness events
            background: Insert on a daemon thread instead of the caller's
        """
        self.initialized = False
        self.client: Optional[Client] = client
        self.table = table
        self.background = background

        if client is not None:
            self.initialized = True
            return

        # Get credentials from args, .env file, or environment variables
        url = supabase_url or os.getenv("SUPABASE_URL")
        key = supabase_key or os.getenv("SUPABASE_KEY")

        if not url or not key:
            logger.warning(
                "Supabase credentials not provided, event logging disabled. "
                "Set SUPABASE_URL and SUPABASE_KEY in .env or the environment."
            )
            return

        try:
            self.client = create_client(url, key)
            self.initialized = True
            logger.info("Supabase logger initialized")
        except Exception as e:
            logger.error("Failed to initialize Supabase logger: %s", e)
            self.initialized = False

    def _insert(self, event_data: Dict[str, Any]):
        try:
            self.client.table(self.table).insert(event_data).execute()
            logger.info(
                "Drowsiness event logged to Supabase: %s", event_data.get("drowsiness_level")
            )
        except Exception as e:
            logger.error("Error logging drowsiness event: %s", e)

    def log_drowsiness_event(self, event_data: Dict[str, Any]):
        """
        Store one drowsiness event.

        Args:
            event_data: Row to insert; copied before the write is scheduled
        """
        if not self.initialized or not self.client:
            return

        event_data = dict(event_data)
        if not self.background:
            self._insert(event_data)
            return

        thread = threading.Thread(target=self._insert, args=(event_data,), daemon=True)
        thread.start()

    def is_initialized(self) -> bool:
        """Check if logger is initialized and ready."""
        return self.initialized

# ==============================================================================
# babyboss/sheets.py
# ------------------------------------------------------------------------------
# Google Sheets API client. Pushes record mutations to the Apps Script web app
# backing the spreadsheet and pulls whole collections back from it.
# ==============================================================================

import time
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

SYNC_ACTIONS = ('sync_users', 'sync_customers', 'sync_orders')
FETCH_ACTIONS = ('get_users', 'get_customers', 'get_orders')


class SheetClient:
    """Client for the spreadsheet web app. Registered like a Flask extension."""

    def __init__(self, app=None):
        self.url = ''
        self.timeout = 15.0
        self.run_async = True
        self.session = requests.Session()
        self._executor: Optional[ThreadPoolExecutor] = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.url = app.config.get('SHEET_API_URL') or ''
        self.timeout = app.config.get('SHEET_TIMEOUT', 15.0)
        self.run_async = app.config.get('SHEET_SYNC_ASYNC', True)
        app.extensions['sheets'] = self

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix='sheet-sync')
        return self._executor

    def _post(self, action: str, data: Dict[str, Any]) -> None:
        """POST one record. Failures are logged and swallowed."""
        try:
            # Apps Script wants text/plain so the browser-style preflight is skipped
            response = self.session.post(
                self.url,
                data=json.dumps({'action': action, 'data': data}, ensure_ascii=False).encode('utf-8'),
                headers={'Content-Type': 'text/plain;charset=utf-8'},
                timeout=self.timeout
            )
            logger.info(f"[GoogleSheet] Synced {action}: HTTP {response.status_code}")
        except requests.exceptions.RequestException as e:
            logger.error(f"[GoogleSheet] Error syncing {action}: {e}")

    def _log_failure(self, action: str, future) -> None:
        """Reports errors raised on the worker, which nothing else collects."""
        error = future.exception()
        if error is not None:
            logger.error(f"[GoogleSheet] Background sync of {action} failed: {error!r}", exc_info=error)

    def push(self, action: str, data: Dict[str, Any]) -> None:
        """
        Fire-and-forget write of a single record.

        Args:
            action: One of sync_users, sync_customers, sync_orders.
            data: The record that changed.
        """
        if action not in SYNC_ACTIONS:
            raise ValueError(f"Unknown sync action: {action}")
        if not self.enabled:
            logger.warning(f"[GoogleSheet] SHEET_API_URL not configured, skipping {action}")
            return
        if self.run_async:
            future = self._get_executor().submit(self._post, action, data)
            future.add_done_callback(lambda f: self._log_failure(action, f))
        else:
            self._post(action, data)

    def fetch(self, action: str) -> List[Dict[str, Any]]:
        """
        Pull a whole collection.

        Returns:
            The records, or an empty list when the sheet is unreachable or
            answers with something that is not a list of records.
        """
        if action not in FETCH_ACTIONS:
            raise ValueError(f"Unknown fetch action: {action}")
        if not self.enabled:
            logger.warning(f"[GoogleSheet] SHEET_API_URL not configured, cannot fetch {action}")
            return []

        logger.info(f"[GoogleSheet] Fetching {action}...")
        # Timestamp busts any caching between us and the script
        params = {'action': action, '_t': int(time.time() * 1000)}
        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"[GoogleSheet] Error fetching {action}: {e}")
            return []

        if isinstance(result, list):
            records = result
        elif isinstance(result, dict) and isinstance(result.get('data'), list):
            records = result['data']
        else:
            records = []
        logger.info(f"[GoogleSheet] {action} fetched: {len(records)} records")
        return records

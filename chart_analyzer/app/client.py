"""
Command-line client for the analysis API.

Mirrors what the browser page does:
- upload a chart (or ask for the sample analysis),
- parse the model's reply into a record,
- render it and keep the last result in a local store until cleared.

Usage:
    python -m chart_analyzer.app.client upload chart.png
    python -m chart_analyzer.app.client sample
    python -m chart_analyzer.app.client show
    python -m chart_analyzer.app.client clear
"""

import argparse
import json
import logging
import mimetypes
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .parsing import parse_analysis
from .render import render_analysis, render_error, render_raw
from .schemas import AnalysisRecord
from .store import (
    DEFAULT_STORE_PATH,
    LAST_IMAGE_KEY,
    LAST_PARSED_KEY,
    LAST_RESULT_KEY,
    JsonFileResultStore,
    ResultStore,
)
from .utils import to_data_url

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "http://127.0.0.1:8000"
REQUEST_TIMEOUT = 120.0

Outcome = Tuple[Dict[str, Any], Optional[AnalysisRecord]]


class ChartAnalyzerClient:
    """Talks to the /analyze endpoint and keeps the last result in `store`."""

    def __init__(
        self,
        base_url: str = DEFAULT_SERVER,
        store: Optional[ResultStore] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.store = store if store is not None else JsonFileResultStore()
        self._http = http_client or httpx.Client(base_url=base_url, timeout=REQUEST_TIMEOUT)

    def close(self) -> None:
        self._http.close()

    def analyze_file(self, path: str) -> Outcome:
        with open(path, "rb") as f:
            data = f.read()
        content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        filename = os.path.basename(path)

        if content_type.startswith("image/"):
            self.store.set(LAST_IMAGE_KEY, to_data_url(data, content_type))

        logger.info(f"Uploading and analyzing chart: {filename} ({len(data)} bytes)")
        try:
            response = self._http.post("/analyze", files={"image": (filename, data, content_type)})
        except httpx.HTTPError as e:
            return self._record_failure("Upload failed", e)
        return self._record_response(response)

    def analyze_sample(self) -> Outcome:
        self.store.remove(LAST_IMAGE_KEY)

        logger.info("Testing with sample chart")
        try:
            response = self._http.get("/analyze")
        except httpx.HTTPError as e:
            return self._record_failure("Test failed", e)
        return self._record_response(response)

    def last_result(self) -> Outcome:
        envelope: Dict[str, Any] = {}
        record: Optional[AnalysisRecord] = None

        saved_result = self.store.get(LAST_RESULT_KEY)
        if saved_result:
            try:
                envelope = json.loads(saved_result)
            except json.JSONDecodeError as e:
                logger.error(f"Failed to load saved result: {e}")

        saved_parsed = self.store.get(LAST_PARSED_KEY)
        if saved_parsed:
            try:
                record = json.loads(saved_parsed)
            except json.JSONDecodeError as e:
                logger.error(f"Failed to load saved analysis: {e}")

        return envelope, record

    def clear(self) -> None:
        self.store.clear_results()

    def _record_response(self, response: httpx.Response) -> Outcome:
        try:
            envelope = response.json()
        except ValueError:
            envelope = None
        if not isinstance(envelope, dict):
            envelope = {
                "success": False,
                "error": f"Unexpected response from server (HTTP {response.status_code})",
                "details": response.text[:500],
            }

        self.store.set(LAST_RESULT_KEY, json.dumps(envelope))

        record = None
        if envelope.get("success") and envelope.get("analysis"):
            record = parse_analysis(envelope["analysis"])

        if record is not None:
            self.store.set(LAST_PARSED_KEY, json.dumps(record))
        else:
            self.store.remove(LAST_PARSED_KEY)

        return envelope, record

    def _record_failure(self, error: str, exc: Exception) -> Outcome:
        logger.error(f"{error}: {exc}")
        envelope = {"success": False, "error": error, "details": str(exc)}
        self.store.set(LAST_RESULT_KEY, json.dumps(envelope))
        self.store.remove(LAST_PARSED_KEY)
        return envelope, None


def render_outcome(envelope: Dict[str, Any], record: Optional[AnalysisRecord]) -> str:
    if record is not None:
        return render_analysis(record, envelope.get("timestamp"))
    if envelope.get("success"):
        return render_raw(envelope)
    return render_error(envelope)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI trading chart analyzer client")
    parser.add_argument("--server", default=os.getenv("CHART_ANALYZER_URL", DEFAULT_SERVER), help="API base URL")
    parser.add_argument("--store", default=DEFAULT_STORE_PATH, help="Path of the local result store")
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Upload a chart image and analyze it")
    upload.add_argument("path", help="PNG or JPEG chart screenshot")
    sub.add_parser("sample", help="Analyze the server's sample chart")
    sub.add_parser("show", help="Show the last stored analysis")
    sub.add_parser("clear", help="Erase the stored analysis")
    return parser


def main(argv: Optional[List[str]] = None, client: Optional[ChartAnalyzerClient] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    client = client or ChartAnalyzerClient(base_url=args.server, store=JsonFileResultStore(args.store))
    try:
        if args.command == "clear":
            client.clear()
            print("Cleared stored analysis.")
            return 0

        if args.command == "show":
            envelope, record = client.last_result()
            if not envelope and record is None:
                print("No stored analysis.")
                return 0
        elif args.command == "sample":
            envelope, record = client.analyze_sample()
        else:
            if not os.path.isfile(args.path):
                print(f"File not found: {args.path}", file=sys.stderr)
                return 1
            envelope, record = client.analyze_file(args.path)

        print(render_outcome(envelope, record))
        return 0 if envelope.get("success") or record is not None else 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())

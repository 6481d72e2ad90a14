"""
AWS Lambda function to trigger batch ingestion via the API.

Deploy this to Lambda and schedule with EventBridge for periodic pulls.
"""

import json
import os
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Trigger ``/ingest/<platform>/run``.

    Environment Variables:
        API_URL: Base URL of the service (e.g., https://xxx.awsapprunner.com)
        CRON_TOKEN: Token sent as ``Authorization: Bearer``
        INGEST_TIMEOUT: Request timeout in seconds (default: 300)

    Event keys (all optional): platform (default "youtube"), limit, pages, fetch.

    EventBridge Rule Example:
        Schedule: cron(0 * * * ? *)  # Hourly
        Input: {"platform": "reddit", "limit": 5}
    """
    api_url = os.environ.get("API_URL")
    if not api_url:
        return {"statusCode": 500, "body": json.dumps({"error": "API_URL environment variable not set"})}

    token = os.environ.get("CRON_TOKEN")
    if not token:
        return {"statusCode": 500, "body": json.dumps({"error": "CRON_TOKEN environment variable not set"})}

    timeout = int(os.environ.get("INGEST_TIMEOUT", "300"))
    event = event or {}
    platform = event.get("platform", "youtube")
    query = {k: event[k] for k in ("limit", "pages", "fetch") if k in event}

    endpoint = f"{api_url.rstrip('/')}/ingest/{urllib.parse.quote(platform)}/run"
    if query:
        endpoint = f"{endpoint}?{urllib.parse.urlencode(query)}"

    request = urllib.request.Request(
        endpoint,
        method="GET",
        headers={"Authorization": f"Bearer {token}", "User-Agent": "PullviewIngestTrigger/1.0"},
    )

    try:
        print(f"Triggering ingest at: {endpoint}")

        with urllib.request.urlopen(request, timeout=timeout) as response:
            result = json.loads(response.read().decode("utf-8"))

            print(f"Ingest completed: {json.dumps(result, indent=2)}")

            return {"statusCode": 200, "body": json.dumps({"success": True, "ingest_result": result})}

    except urllib.error.HTTPError as e:
        error_body = e.read().decode("utf-8") if e.fp else str(e)
        print(f"Ingest request failed with HTTP {e.code}: {error_body}")

        return {"statusCode": e.code, "body": json.dumps({"success": False, "error": f"HTTP {e.code}: {error_body}"})}

    except urllib.error.URLError as e:
        print(f"Ingest request failed: {str(e)}")

        return {"statusCode": 500, "body": json.dumps({"success": False, "error": f"Connection error: {str(e)}"})}


# For local testing
if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1:
        os.environ["API_URL"] = sys.argv[1]

    result = lambda_handler({"platform": sys.argv[2]} if len(sys.argv) > 2 else {}, None)
    print(json.dumps(result, indent=2))

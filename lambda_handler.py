"""
AWS Lambda handler for the Commission & Remuneration Ledger Engine API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import base64
import json
import logging
import os

from ledger_engine import InMemoryLedgerStore, LedgerProcessor
from ledger_engine.errors import AlreadyRemunerated, DuplicateCalculation, EntityNotFound

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Environment (dev, staging, prod)
ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

# Initialize processor (reused across warm invocations)
processor = LedgerProcessor(InMemoryLedgerStore())

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}

# POST path -> (processor method name, operation name for logs)
POST_ROUTES = {
    "/parameters": ("define_parameter_from_dict", "parameter definition"),
    "/rubrics": ("define_rubric_from_dict", "rubric definition"),
    "/process_period": ("process_period_from_dict", "period calculation"),
    "/process_remuneration": ("process_remuneration_from_dict", "remuneration"),
    "/remunerate_calculation": ("remunerate_calculation_from_dict", "calculation remuneration"),
    "/simulate_commission": ("simulate_commission_from_dict", "commission simulation"),
}


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health
    - GET /api
    - POST /parameters, /rubrics, /process_period, /process_remuneration,
      /remunerate_calculation, /simulate_commission
    - OPTIONS (CORS preflight)
    """
    # Handle CORS preflight
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": ""}

    # Get path (supports both REST API and HTTP API formats)
    path = event.get("path") or event.get("rawPath", "")

    # Route to appropriate handler
    if path == "/health" and http_method == "GET":
        return handle_health()
    elif path == "/api" and http_method == "GET":
        return handle_api_info()
    elif path in POST_ROUTES and http_method == "POST":
        method_name, name = POST_ROUTES[path]
        return handle_operation(event, getattr(processor, method_name), name)
    else:
        return _response(404, {"error": "Not found", "path": path})


def _response(status_code, payload):
    return {"statusCode": status_code, "headers": CORS_HEADERS, "body": json.dumps(payload)}


def handle_health():
    """Health check endpoint."""
    return _response(200, {"status": "healthy", "environment": ENVIRONMENT})


def handle_api_info():
    """API information endpoint."""
    return _response(
        200,
        {
            "status": "ok",
            "message": "Commission & Remuneration Ledger Engine API",
            "version": "1.0",
            "environment": ENVIRONMENT,
            "runtime": "AWS Lambda",
            "endpoints": {path: f"{path} [POST]" for path in POST_ROUTES} | {"health": "/health [GET]"},
        },
    )


def _parse_body(event):
    """Return the JSON body as a dict, or None when the request carries none."""
    body = event.get("body", "")
    if not isinstance(body, str):
        return body
    if not body:
        return None
    # Handle base64 encoded body (API Gateway)
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return json.loads(body)


def handle_operation(event, operation, name):
    """Run one engine operation on the request body."""
    try:
        input_data = _parse_body(event)
        if not input_data:
            return _response(400, {"error": "No input data provided", "status": "failed"})

        logger.info(f"Processing {name}")
        result = operation(input_data)
        logger.info(f"{name} processed successfully")

        return _response(200, result)

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {str(e)}")
        return _response(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    except (DuplicateCalculation, AlreadyRemunerated) as e:
        logger.warning(f"Conflict: {str(e)}")
        return _response(409, {"error": str(e), "status": "duplicate"})

    except EntityNotFound as e:
        logger.error(f"Not found: {str(e)}")
        return _response(404, {"error": str(e), "status": "not_found"})

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine (missing fields, invalid types, etc.)
        logger.error(f"Validation error: {str(e)}")
        return _response(400, {"error": f"Validation error: {str(e)}", "status": "validation_failed"})

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected processing error: {str(e)}", exc_info=True)
        return _response(500, {"error": "An unexpected error occurred during processing", "status": "failed"})

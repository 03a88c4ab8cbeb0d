import json

from . import __version__
from .models import ResponseStatus


def _get_cors_headers():
    """Get CORS headers for API responses."""
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
        "Access-Control-Max-Age": "86400",
    }


def _error_schema(with_details):
    properties = {"error": {"type": "string"}}
    if with_details:
        properties["details"] = {"type": "string"}
    return {
        "type": "object",
        "required": list(properties),
        "properties": properties,
    }


def cors_handler(event, context):
    """Handle CORS preflight requests (OPTIONS)."""
    return {
        "statusCode": 200,
        "headers": _get_cors_headers(),
        "body": json.dumps({"message": "OK"}),
    }


def swagger_ui_handler(event, context):
    """Serve Swagger UI HTML."""
    # Handle CORS preflight
    if event.get("httpMethod") == "OPTIONS":
        return cors_handler(event, context)

    swagger_html = """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Brand Concierge API - Swagger UI</title>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1">
        <link rel="stylesheet" type="text/css" href="https://cdnjs.cloudflare.com/ajax/libs/swagger-ui/4.18.3/swagger-ui.min.css">
    </head>
    <body>
        <div id="swagger-ui"></div>
        <script src="https://cdnjs.cloudflare.com/ajax/libs/swagger-ui/4.18.3/swagger-ui.min.js"></script>
        <script>
            window.onload = function() {
                window.ui = SwaggerUIBundle({
                    url: "./openapi.json",
                    dom_id: '#swagger-ui',
                    presets: [SwaggerUIBundle.presets.apis],
                    deepLinking: true
                });
            };
        </script>
    </body>
    </html>
    """

    return {
        "statusCode": 200,
        "headers": {
            "Content-Type": "text/html; charset=utf-8",
            **_get_cors_headers(),
        },
        "body": swagger_html,
    }


def build_openapi_spec(stage="/Prod"):
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Brand Concierge API",
            "description": "Answers design-team questions strictly from the brand knowledge document",
            "version": __version__,
        },
        "servers": [{"url": stage, "description": "Current API Gateway"}],
        "paths": {
            "/concierge": {
                "post": {
                    "summary": "Ask the Brand Concierge",
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/ConciergeRequest"}
                            }
                        },
                    },
                    "responses": {
                        "200": {
                            "description": "Answer from the knowledge document",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/ConciergeResponse"}
                                }
                            },
                        },
                        "400": {
                            "description": "Missing or invalid query",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/ClientError"}}},
                        },
                        "405": {
                            "description": "Method Not Allowed",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/ClientError"}}},
                        },
                        "500": {
                            "description": "Configuration or upstream failure",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/ServerError"}}},
                        },
                        "504": {
                            "description": "Upstream timed out",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/ServerError"}}},
                        },
                    },
                }
            }
        },
        "components": {
            "schemas": {
                "ConciergeRequest": {
                    "type": "object",
                    "required": ["query"],
                    "properties": {
                        "query": {"type": "string", "example": "What is our primary brand color?"},
                        "knowledgeBaseContent": {
                            "type": "string",
                            "description": "Inline knowledge document; the configured default is used when omitted",
                        },
                    },
                },
                "ConciergeResponse": {
                    "type": "object",
                    "required": ["conversationalReply", "status", "recommendedLink"],
                    "properties": {
                        "conversationalReply": {"type": "string"},
                        "status": {"type": "string", "enum": [s.value for s in ResponseStatus]},
                        "recommendedLink": {
                            "type": "string",
                            "description": "Absolute URL, or 'none'",
                            "example": "https://drive.google.com/folder/primary-logo-svg",
                        },
                    },
                },
                "ClientError": _error_schema(with_details=False),
                "ServerError": _error_schema(with_details=True),
            }
        },
    }


def openapi_spec_handler(event, context):
    """Serve OpenAPI specification."""
    # Handle CORS preflight
    if event.get("httpMethod") == "OPTIONS":
        return cors_handler(event, context)

    stage = (event.get("requestContext") or {}).get("stage", "/Prod")
    if not stage.startswith("/"):
        stage = f"/{stage}"

    return {
        "statusCode": 200,
        "headers": {
            "Content-Type": "application/json",
            **_get_cors_headers(),
        },
        "body": json.dumps(build_openapi_spec(stage)),
    }

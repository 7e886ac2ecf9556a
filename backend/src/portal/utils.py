"""
Common utility functions for Lambda handlers.
"""
import functools
import json
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Type, TypeVar

import pydantic

from .errors import PortalError, ValidationError
from .logging import logger, log_event

SchemaT = TypeVar('SchemaT', bound=pydantic.BaseModel)


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types from DynamoDB."""

    def default(self, o):
        if isinstance(o, Decimal):
            # Convert to int if it's a whole number, otherwise float
            if o % 1 == 0:
                return int(o)
            return float(o)
        return super().default(o)


def format_response(
    status_code: int,
    body: Any,
    headers: Dict[str, str] = None
) -> Dict[str, Any]:
    """
    Format a standard API Gateway response with CORS headers.

    Args:
        status_code: HTTP status code
        body: Response body (will be JSON serialized); None for an empty body
        headers: Additional headers to include

    Returns:
        API Gateway response dict
    """
    default_headers = {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Credentials': True,
        'Content-Type': 'application/json'
    }

    if headers:
        default_headers.update(headers)

    return {
        'statusCode': status_code,
        'headers': default_headers,
        'body': json.dumps(body, cls=DecimalEncoder) if body is not None else ''
    }


def parse_body(event: dict) -> dict:
    """
    Parse the JSON body from an API Gateway event.

    Args:
        event: API Gateway Lambda proxy event

    Returns:
        Parsed body dict ({} when the body is empty)

    Raises:
        ValidationError: the body is not a JSON object
    """
    body = event.get('body') or '{}'
    if isinstance(body, dict):
        return body
    try:
        parsed = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        raise ValidationError('Invalid JSON')
    if not isinstance(parsed, dict):
        raise ValidationError('Request body must be a JSON object')
    return parsed


def parse_request(schema: Type[SchemaT], event: dict) -> SchemaT:
    """Validate the event body against a request schema."""
    return schema.model_validate(parse_body(event))


def get_path_param(event: dict, param_name: str) -> Optional[str]:
    """Extract path parameter from event."""
    try:
        return event['pathParameters'][param_name]
    except (KeyError, TypeError):
        return None


def get_query_param(event: dict, param_name: str, default: str = None) -> Optional[str]:
    """Extract query string parameter from event."""
    params = event.get('queryStringParameters') or {}
    return params.get(param_name, default)


def require_path_param(event: dict, param_name: str) -> str:
    value = get_path_param(event, param_name)
    if not value:
        raise ValidationError(f'Missing path parameter {param_name}', field=param_name)
    return value


def _validation_response(e: pydantic.ValidationError) -> Dict[str, Any]:
    first = e.errors()[0]
    field = '.'.join(str(p) for p in first.get('loc', ()))
    message = first.get('msg', 'Invalid request')
    # pydantic prefixes custom validator messages
    message = message.replace('Value error, ', '')
    body = {'message': message}
    if field:
        body['field'] = field
    return format_response(400, body)


def api_handler(func: Callable[[dict, Any], Dict[str, Any]]):
    """
    Wrap a Lambda handler: log the event and map errors to responses.

    PortalError subclasses carry their own status code, schema failures
    become 400, and anything else is logged and reported as 500.
    """
    @functools.wraps(func)
    def wrapper(event, context):
        log_event(event)
        try:
            return func(event, context)
        except PortalError as e:
            logger.info(f"{func.__module__}: {type(e).__name__}: {e.message}")
            return format_response(e.status_code, e.to_dict())
        except pydantic.ValidationError as e:
            return _validation_response(e)
        except Exception as e:
            logger.exception(f"Unhandled error in {func.__module__}: {e}")
            return format_response(500, {'message': 'Internal Server Error'})

    return wrapper

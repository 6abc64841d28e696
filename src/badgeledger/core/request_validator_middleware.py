"""
badgeledger - Request Validator Middleware

Request validation for the Flask API:
- Request size validation
- Content-Type checking
- JSON structure validation
- Pydantic model validation
"""

import logging
from functools import wraps
from typing import Any, Callable, Dict, Optional, Tuple, Type

from flask import jsonify, request
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class RequestValidator:
    """
    Validates incoming HTTP requests before they reach a handler.

    Features:
    - Size limit enforcement
    - Content-Type validation
    - Nesting depth check
    - Pydantic model parsing
    """

    def __init__(
        self,
        max_json_size: int = 64 * 1024,
        max_depth: int = 5,
        allowed_content_types: Optional[list] = None,
    ):
        self.max_json_size = max_json_size
        self.max_depth = max_depth
        self.allowed_content_types = allowed_content_types or ["application/json"]

    def validate_request_size(self) -> Tuple[bool, Optional[str]]:
        content_length = request.content_length
        if content_length and content_length > self.max_json_size:
            logger.warning(
                "Size limit exceeded",
                extra={
                    "event": "api.payload_too_large",
                    "content_length": content_length,
                    "remote_addr": request.remote_addr,
                },
            )
            return False, f"Request body exceeds maximum size of {self.max_json_size} bytes"
        return True, None

    def validate_content_type(self) -> Tuple[bool, Optional[str]]:
        if request.method in ("GET", "HEAD", "DELETE"):
            return True, None

        content_type = request.content_type
        if not content_type:
            return True, None

        base_type = content_type.split(";")[0].strip()
        if base_type not in self.allowed_content_types:
            return False, f"Content-Type '{base_type}' is not allowed"
        return True, None

    def validate_json_structure(self) -> Tuple[bool, Optional[str], Any]:
        """
        Parse the body and check nesting depth.

        Returns:
            Tuple of (valid, error_message, parsed body)
        """
        data = request.get_json(force=True, silent=True)
        if data is None:
            return False, "No JSON data provided", None

        def check_depth(obj: Any, depth: int = 0) -> bool:
            if depth > self.max_depth:
                return False
            if isinstance(obj, dict):
                return all(check_depth(v, depth + 1) for v in obj.values())
            if isinstance(obj, list):
                return all(check_depth(v, depth + 1) for v in obj)
            return True

        if not check_depth(data):
            return False, f"JSON exceeds maximum nesting depth of {self.max_depth}", None
        return True, None, data

    def validate_pydantic_model(
        self, model: Type[BaseModel], data: Any
    ) -> Tuple[bool, Optional[str], Optional[BaseModel]]:
        """
        Validate request body against Pydantic model.

        Returns:
            Tuple of (valid, error_message, parsed model)
        """
        try:
            return True, None, model.model_validate(data)
        except ValidationError as e:
            messages = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
                for err in e.errors()
            )
            logger.warning(
                "Request validation failed",
                extra={"event": "api.validation_failed", "path": request.path, "errors": messages},
            )
            return False, f"Validation error: {messages}", None

    def get_request_metadata(self) -> Dict[str, Any]:
        return {
            "method": request.method,
            "path": request.path,
            "remote_addr": request.remote_addr,
            "content_length": request.content_length,
        }


def validate_request(
    validator: RequestValidator,
    pydantic_model: Optional[Type[BaseModel]] = None,
) -> Callable:
    """
    Decorator to validate requests before handler execution.

    The parsed model is available to the handler as
    ``request.validated_model``.
    """

    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args, **kwargs):
            valid, error = validator.validate_request_size()
            if not valid:
                return jsonify({"success": False, "error": error, "code": "payload_too_large"}), 413

            valid, error = validator.validate_content_type()
            if not valid:
                return jsonify({"success": False, "error": error, "code": "unsupported_media_type"}), 415

            valid, error, data = validator.validate_json_structure()
            if not valid:
                return jsonify({"success": False, "error": error, "code": "invalid_json"}), 400

            parsed_model = None
            if pydantic_model:
                valid, error, parsed_model = validator.validate_pydantic_model(pydantic_model, data)
                if not valid:
                    return jsonify({"success": False, "error": error, "code": "validation_error"}), 400

            logger.debug(
                "Valid request",
                extra={"event": "api.request_validated", **validator.get_request_metadata()},
            )
            request.validated_model = parsed_model
            return f(*args, **kwargs)

        return decorated_function

    return decorator

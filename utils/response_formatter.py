# File: utils/response_formatter.py
from flask import jsonify
from typing import Any, Dict, Optional, List, Union
from datetime import datetime


class ResponseFormatter:
    """Utility class for formatting API responses"""

    @staticmethod
    def success(data: Any, message: str = "Success", status_code: int = 200) -> tuple:
        """Format successful response"""
        response = {
            "success": True,
            "message": message,
            "data": data,
            "timestamp": datetime.now().isoformat()
        }
        return jsonify(response), status_code

    @staticmethod
    def error(message: str, status_code: int = 400, details: Optional[Dict] = None) -> tuple:
        """Format error response"""
        response = {
            "success": False,
            "message": message,
            "timestamp": datetime.now().isoformat()
        }

        if details:
            response["details"] = details

        return jsonify(response), status_code

    @staticmethod
    def validation_error(errors: Union[Dict[str, str], List[str]] = None, message: str = "Validation failed") -> tuple:
        """Format validation error response"""
        if isinstance(errors, dict):
            return ResponseFormatter.error(message=message, status_code=422,
                                           details={"validation_errors": errors})
        if errors:
            return ResponseFormatter.error(message=message, status_code=400, details={"errors": list(errors)})
        return ResponseFormatter.error(message=message, status_code=400)

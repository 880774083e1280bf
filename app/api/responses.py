"""
Success envelope shared by all routers; errors use the handlers in exceptions.py
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


def ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """{"success": true, "data": ...} with pydantic models dumped to JSON types"""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    elif isinstance(data, list):
        data = [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in data]

    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body

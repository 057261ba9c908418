from typing import Any, Dict, Optional


def api_message(message: str) -> Dict[str, Any]:
	return {"message": message}


def api_error(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
	error: Dict[str, Any] = {"message": message, "code": code}
	if details is not None:
		error["details"] = details
	return error

from typing import Any, Dict, List, Optional


class IngestError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class InvalidSchema(IngestError):
    status_code = 400
    message = "Invalid request body"

    def __init__(self, details: List[Dict[str, Any]], message: Optional[str] = None):
        super().__init__(message)
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.details}


class Unauthorized(IngestError):
    status_code = 401
    message = "Invalid project_id"


class DomainRejected(IngestError):
    status_code = 403
    message = "Domain not allowed for this project"


class StorageFailure(IngestError):
    status_code = 500
    message = "Failed to insert events"

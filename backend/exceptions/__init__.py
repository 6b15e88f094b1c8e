from typing import Optional, Dict, Any, List

class VerifactException(Exception):
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }

class EmptyInputException(VerifactException):
    status_code = 400

    def __init__(self, modality: str):
        super().__init__(
            "No analyzable text was provided.",
            {"modality": modality}
        )

class UrlUnreachableException(VerifactException):
    status_code = 422

    def __init__(self, url: str, reason: str, restricted: bool = False):
        super().__init__(
            "Unable to fetch content from the URL provided. Please make sure it is accessible and contains readable text.",
            {"url": url, "reason": reason, "restricted": restricted}
        )

class CapabilityUnavailableException(VerifactException):
    def __init__(self, capability: str, reason: str):
        super().__init__(
            f"{capability} is not available at the moment: {reason}",
            {"capability": capability, "reason": reason}
        )

class SearchUnavailableException(CapabilityUnavailableException):
    def __init__(self, reason: str, status_code: Optional[int] = None):
        super().__init__("Web Search", reason)
        self.details["status_code"] = status_code

class ContentFetchException(CapabilityUnavailableException):
    def __init__(self, url: str, reason: str, restricted: bool = False):
        super().__init__("URL Fetch", reason)
        self.details.update({"url": url, "restricted": restricted})

    @property
    def restricted(self) -> bool:
        return self.details["restricted"]

class UpstreamUnavailableException(VerifactException):
    status_code = 503

    def __init__(self, reason: str, recoverable: bool = True):
        super().__init__(
            f"Reasoning engine unavailable: {reason}",
            {"reason": reason, "recoverable": recoverable, "retryable": True}
        )

    @property
    def recoverable(self) -> bool:
        return self.details["recoverable"]

class SchemaViolationException(VerifactException):
    status_code = 502

    def __init__(self, violations: List[str]):
        super().__init__(
            "The analysis could not be completed because the reasoning engine returned an invalid verdict. Please try again.",
            {"violations": violations}
        )

    @property
    def violations(self) -> List[str]:
        return self.details["violations"]

class MediaConversionException(VerifactException):
    status_code = 502

    def __init__(self, converter: str, reason: str):
        super().__init__(
            f"{converter} failed: {reason}",
            {"converter": converter, "reason": reason}
        )

class CircuitBreakerOpenException(VerifactException):
    status_code = 503

    def __init__(self, service_name: str, failure_count: int):
        super().__init__(
            f"Circuit breaker open for {service_name}",
            {"service": service_name, "failure_count": failure_count}
        )

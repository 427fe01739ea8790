from hydra_shields.model import EndpointResponse


class EndpointError(Exception):
    label: str = "Endpoint Error"

    def to_response(self) -> EndpointResponse:
        return EndpointResponse(label=self.label, message=str(self), is_error=True)


class UrlError(EndpointError):
    label = "URL Parse Error"


class PatternError(EndpointError):
    label = "Glob Parse Error"


class TransportError(EndpointError):
    label = "URL Request Error"


class DecodeError(EndpointError):
    label = "Response Decode Error"

"""Transport integrations that feed the metering pipeline."""

from .httpx_transport import MeteredTransport, parse_multipart_fields, parse_request_body

__all__ = ["MeteredTransport", "parse_multipart_fields", "parse_request_body"]

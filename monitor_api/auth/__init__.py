from .gateway_token import check_gateway_token, extract_body_token

__all__ = ["check_gateway_token", "extract_body_token"]

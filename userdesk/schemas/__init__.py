"""请求 payload / query 的 pydantic schema."""

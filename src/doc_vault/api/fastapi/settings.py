from pydantic import BaseModel


class ApiConfig(BaseModel):
    base_prefix: str = "/api"
    cors_origins: list[str] | None = None
    # multipart framing on top of the file bytes when bounding request size
    multipart_overhead_bytes: int = 1024 * 1024

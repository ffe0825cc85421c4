"""
Configuration for Evidence Report Service
=========================================

Environment variables:
- DATABASE_URL: SQLAlchemy URL (default: sqlite:///./evidence.db)
- STORAGE_BACKEND: local|s3 (default: local)
- STORAGE_BUCKET: Bucket holding case files (default: guard-rent)
- LOCAL_STORAGE_DIR: Root directory for the local backend
- PUBLIC_BASE_URL: Base URL used when signing local download links
- URL_SIGNING_SECRET: Secret for local signed URLs
- SIGNED_URL_TTL_SECONDS: Lifetime of retrieval links (default: 3600)
- FETCH_TIMEOUT_SECONDS: Deadline for fetching all images of one report (default: 30)
- IMAGE_WORKERS: Parallel image decoders, 0 = one per CPU (default: 0)
- ADMIN_EMAILS: Comma separated list of admin emails
- JWT_SECRET_KEY: Secret for verifying bearer tokens
- DEPOSIT_PACK_VERIFY_HASHES: Enforce the hash gate on deposit packs (default: false)
"""

import os
from typing import Optional, List
from pydantic_settings import BaseSettings
from functools import lru_cache


DEFAULT_SIGNING_SECRET = "dev-signing-secret-change-in-production"
DEFAULT_JWT_SECRET = "dev-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Database
    database_url: str = "sqlite:///./evidence.db"
    query_timeout_seconds: int = 10

    # Object storage
    storage_backend: str = "local"  # local | s3
    storage_bucket: str = "guard-rent"
    local_storage_dir: str = "./storage"
    public_base_url: str = "http://localhost:8000"
    url_signing_secret: str = DEFAULT_SIGNING_SECRET
    s3_region: str = "eu-west-1"
    s3_endpoint_url: Optional[str] = None
    signed_url_ttl_seconds: int = 3600

    # Image fetching
    fetch_timeout_seconds: float = 30.0
    image_workers: int = 0

    # Access
    admin_emails: str = ""
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60

    # Document branding
    brand_name: str = "RentVault"
    footer_text: str = "securely stores and organises your rental documents. Not legal advice."

    # Reproducible output (no creation date / random document id in the PDF)
    pdf_invariant: bool = False

    # Report policy
    deposit_pack_verify_hashes: bool = False

    # Service info
    service_version: str = "1.0.0"
    log_level: str = "INFO"

    class Config:
        env_prefix = ""
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def admin_email_list(self) -> List[str]:
        return [e.strip().lower() for e in self.admin_emails.split(",") if e.strip()]

    @property
    def worker_count(self) -> int:
        if self.image_workers > 0:
            return self.image_workers
        return os.cpu_count() or 1

    def validate_storage_config(self) -> List[str]:
        """Validate storage configuration, return list of warnings"""
        warnings = []

        if self.storage_backend not in ("local", "s3"):
            warnings.append(f"STORAGE_BACKEND={self.storage_backend} is unknown (expected local or s3)")

        if self.storage_backend == "local" and self.url_signing_secret == DEFAULT_SIGNING_SECRET:
            warnings.append("URL_SIGNING_SECRET not set - local download links use the development secret")

        if self.jwt_secret_key == DEFAULT_JWT_SECRET:
            warnings.append("JWT_SECRET_KEY not set - bearer tokens are checked against the development secret")

        if self.signed_url_ttl_seconds <= 0:
            warnings.append("SIGNED_URL_TTL_SECONDS must be positive")

        return warnings


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()

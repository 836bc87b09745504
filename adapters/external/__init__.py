"""
외부 서비스 어댑터 패키지

Microsoft Graph API 및 토큰 발급 엔드포인트와의 통신을 담당하는 어댑터들을 포함합니다.
"""

from .graph_api_client import GraphDirectoryClientAdapter
from .credential_provider import ClientCredentialProviderAdapter

__all__ = [
    "GraphDirectoryClientAdapter",
    "ClientCredentialProviderAdapter",
]

"""
애플리케이션 자격 증명 제공자 어댑터

OAuth2 Client Credentials 흐름으로 app-only 액세스 토큰을 발급받습니다.
설정이 없거나 발급에 실패하면 None을 반환하여 호출자가 대체 토큰을 사용하도록 합니다.
"""

from typing import List, Optional

import httpx

from core.domain.ports import ConfigPort, CredentialProviderPort, LoggerPort

GRAPH_DEFAULT_SCOPE = "https://graph.microsoft.com/.default"


class ClientCredentialProviderAdapter(CredentialProviderPort):
    """Client Credentials 흐름 자격 증명 제공자"""

    def __init__(
        self,
        config: ConfigPort,
        logger: LoggerPort,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.logger = logger
        self.auth_url = config.get_graph_auth_url()
        self.timeout = config.get_graph_timeout_seconds()
        self._transport = transport

    def get_missing_settings(self) -> List[str]:
        """토큰 발급에 필요한 설정 중 비어 있는 항목을 반환합니다."""
        settings = {
            "AZURE_CLIENT_ID": self.config.get_azure_client_id(),
            "AZURE_CLIENT_SECRET": self.config.get_azure_client_secret(),
            "AZURE_TENANT_ID": self.config.get_azure_tenant_id(),
        }
        return [name for name, value in settings.items() if not value]

    async def get_service_credential(self) -> Optional[str]:
        """app-only 액세스 토큰을 발급받습니다."""
        missing = self.get_missing_settings()
        if missing:
            self.logger.debug(f"앱 자격 증명 설정 없음: {', '.join(missing)}")
            return None

        tenant_id = self.config.get_azure_tenant_id()
        url = f"{self.auth_url}/{tenant_id}/oauth2/v2.0/token"

        data = {
            "client_id": self.config.get_azure_client_id(),
            "client_secret": self.config.get_azure_client_secret(),
            "scope": GRAPH_DEFAULT_SCOPE,
            "grant_type": "client_credentials",
        }

        self.logger.debug(f"앱 토큰 발급 요청: tenant_id={tenant_id}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            self.logger.error(f"앱 토큰 발급 요청 실패: {str(e)}")
            return None

        if response.status_code != 200:
            self.logger.error(f"앱 토큰 발급 실패: {response.status_code} - {response.text}")
            return None

        try:
            body = response.json()
        except ValueError:
            self.logger.error("앱 토큰 응답이 JSON 형식이 아닙니다")
            return None

        access_token = body.get("access_token") if isinstance(body, dict) else None
        if not access_token:
            self.logger.error("앱 토큰 응답에 access_token이 없습니다")
            return None

        self.logger.debug("앱 토큰 발급 성공")
        return access_token

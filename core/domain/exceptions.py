"""
도메인 예외 정의

디렉터리 동기화 과정에서 발생하는 오류를 분류합니다.
어댑터는 HTTP 상태 코드를 이 예외들로 변환하고, 유즈케이스는 분류에 따라 처리합니다.
"""

from typing import Optional


class DirectorySyncError(Exception):
    """디렉터리 동기화 기본 예외"""
    pass


class ConfigurationError(DirectorySyncError):
    """자격 증명 또는 동기화 대상 그룹 설정이 없는 경우"""
    pass


class DirectoryApiError(DirectorySyncError):
    """디렉터리 API 오류

    Attributes:
        status_code: HTTP 상태 코드 (네트워크 오류인 경우 None)
        message: 오류 메시지
        resource: 요청한 리소스 경로
    """

    def __init__(self, message: str, status_code: Optional[int] = None, resource: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.resource = resource
        super().__init__(message)


class DirectoryNotFoundError(DirectoryApiError):
    """리소스가 없음 (404)"""

    def __init__(self, message: str, resource: Optional[str] = None):
        super().__init__(message, status_code=404, resource=resource)


class DirectoryForbiddenError(DirectoryApiError):
    """권한 없음 (403)"""

    def __init__(self, message: str, resource: Optional[str] = None):
        super().__init__(message, status_code=403, resource=resource)


class DirectoryThrottledError(DirectoryApiError):
    """요청 제한 (429)

    Attributes:
        retry_after: 서버가 지정한 재시도 대기 시간(초), 없으면 None
    """

    def __init__(self, message: str, retry_after: Optional[int] = None, resource: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(message, status_code=429, resource=resource)


class RetryLimitExceededError(DirectorySyncError):
    """스로틀링 재시도 한도 초과"""

    def __init__(self, message: str, attempts: int):
        self.attempts = attempts
        super().__init__(message)

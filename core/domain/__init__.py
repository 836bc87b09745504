"""
Domain 패키지

도메인 엔티티, 예외, 포트 인터페이스를 정의합니다.
외부 의존성 없이 순수한 비즈니스 규칙만 포함합니다.

주요 엔티티:
- DirectoryAccount: 디렉터리에서 가져온 그룹 멤버
- CachedAccountEntry: 로컬 캐시에 저장된 계정
- SyncConfigMarker: 동기화 대상 그룹 및 마지막 동기화 시각
"""

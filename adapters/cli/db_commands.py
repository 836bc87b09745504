"""
데이터베이스 관리 CLI 명령어

데이터베이스 초기화, 리셋, 캐시 조회를 위한 CLI 명령어입니다.
"""

import asyncio
import typer
from rich.console import Console
from rich.table import Table

from adapters.db.cache_repository import AccountCacheRepositoryAdapter
from adapters.db.database import initialize_database
from adapters.logger import create_logger
from config.adapters import get_config

# CLI 앱 생성
app = typer.Typer(name="db", help="데이터베이스 관리 명령어")
console = Console()


@app.command("init")
def init_database(
    drop_existing: bool = typer.Option(False, "--drop", help="기존 테이블을 삭제하고 재생성"),
):
    """데이터베이스를 초기화합니다."""

    async def _init():
        try:
            config = get_config()
            console.print(f"[blue]환경: {config.get_environment()}[/blue]")
            console.print(f"[blue]데이터베이스: {config.get_database_url()}[/blue]")

            db_adapter = initialize_database(config)
            await db_adapter.initialize()

            if drop_existing:
                console.print("[yellow]기존 테이블을 삭제하는 중...[/yellow]")
                await db_adapter.drop_tables()

            console.print("[blue]데이터베이스 테이블을 생성하는 중...[/blue]")
            await db_adapter.create_tables()

            console.print("[green]✓ 데이터베이스 초기화가 완료되었습니다![/green]")

            await db_adapter.close()

        except Exception as e:
            console.print(f"[red]오류: {str(e)}[/red]")
            raise typer.Exit(1)

    asyncio.run(_init())


@app.command("reset")
def reset_database():
    """데이터베이스를 리셋합니다. (캐시와 동기화 설정 모두 삭제)"""

    confirm = typer.confirm("모든 데이터가 삭제됩니다. 계속하시겠습니까?")
    if not confirm:
        console.print("[yellow]취소되었습니다.[/yellow]")
        return

    async def _reset():
        try:
            console.print("[blue]데이터베이스 리셋 시작...[/blue]")

            config = get_config()
            db_adapter = initialize_database(config)
            await db_adapter.initialize()

            # 테이블 삭제 후 재생성
            await db_adapter.drop_tables()
            await db_adapter.create_tables()

            console.print("[green]✓ 데이터베이스 리셋이 완료되었습니다![/green]")

            await db_adapter.close()

        except Exception as e:
            console.print(f"[red]오류: {str(e)}[/red]")
            raise typer.Exit(1)

    asyncio.run(_reset())


@app.command("members")
def show_members(
    limit: int = typer.Option(50, help="조회할 계정 수"),
    skip: int = typer.Option(0, help="건너뛸 계정 수"),
):
    """캐시된 디렉터리 계정 목록을 조회합니다."""

    async def _show_members():
        try:
            console.print("[blue]계정 캐시 조회 중...[/blue]")

            config = get_config()
            db_adapter = initialize_database(config)
            await db_adapter.initialize()

            async with db_adapter.get_session() as session:
                repository = AccountCacheRepositoryAdapter(session, create_logger("db_cli"))
                entries = await repository.list_entries(skip=skip, limit=limit)
                total = await repository.count_entries()

            await db_adapter.close()

            if not entries:
                console.print("[yellow]계정 캐시가 비어있습니다.[/yellow]")
                return

            table = Table(title=f"계정 캐시 ({len(entries)}/{total})")
            table.add_column("객체 ID", style="cyan")
            table.add_column("이메일", style="green")
            table.add_column("표시 이름", style="blue")
            table.add_column("마지막 동기화", style="yellow")

            for entry in entries:
                table.add_row(
                    entry.external_id[:8] + "...",
                    entry.email,
                    entry.display_name or "-",
                    entry.last_synced_at.strftime("%Y-%m-%d %H:%M:%S"),
                )

            console.print(table)

        except Exception as e:
            console.print(f"[red]오류: {str(e)}[/red]")
            raise typer.Exit(1)

    asyncio.run(_show_members())


if __name__ == "__main__":
    app()

"""
개발용 사용자 생성
계정 관리는 외부 시스템 담당이므로 로컬 테스트용으로만 사용

사용법: python scripts/create_user.py "홍길동" [email]
"""
import asyncio
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.infrastructure.persistence.session import close_db, get_db_context, init_db
from app.infrastructure.repositories.user_repository import UserRepository


async def create_user(display_name: str, email: str = None):
    """users 테이블에 사용자 삽입"""
    print("=" * 80)
    print("개발용 사용자 생성")
    print("=" * 80)

    await init_db()
    print("✅ DB 연결 완료")

    try:
        async with get_db_context() as db:
            user = await UserRepository(db).create_user(display_name, email)
            print(f"✅ 사용자 생성 완료 - id: {user.id}, name: {user.display_name}, email: {user.email}")
    except Exception as e:
        print(f"❌ 사용자 생성 실패: {str(e)}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("사용법: python scripts/create_user.py <display_name> [email]")
        sys.exit(1)

    asyncio.run(create_user(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None))

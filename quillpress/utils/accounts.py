import asyncio

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


async def get_password_hash(password: str) -> str:
    # CPU 바운드 작업: 스레드 풀로 오프로드
    return await asyncio.to_thread(pwd_context.hash, password)

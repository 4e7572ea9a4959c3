"""Health check module for local dependencies."""

import asyncio
import time
from dataclasses import dataclass
from typing import Literal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine


@dataclass
class ServiceHealth:
    """Health status for a dependency."""

    status: Literal["connected", "unreachable", "error", "disabled"]
    latency_ms: float | None = None
    error: str | None = None


async def check_database(db_url: str) -> ServiceHealth:
    """Check database connectivity with a SELECT 1 query.

    Args:
        db_url: SQLAlchemy async connection URL

    Returns:
        ServiceHealth with connection status and latency
    """
    start = time.perf_counter()
    try:
        async with asyncio.timeout(2.0):
            # Temporary engine so the check never touches the session's pool
            engine = create_async_engine(db_url, pool_pre_ping=True)
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            await engine.dispose()
            latency = (time.perf_counter() - start) * 1000
            return ServiceHealth(status="connected", latency_ms=round(latency, 2))
    except asyncio.TimeoutError:
        return ServiceHealth(status="unreachable", error="timeout")
    except Exception as e:
        return ServiceHealth(status="error", error=str(e))


async def check_typst(binary: str) -> ServiceHealth:
    """Check that the Typst compiler runs (``typst --version``).

    Args:
        binary: Typst executable name or path

    Returns:
        ServiceHealth with status and latency
    """
    start = time.perf_counter()
    try:
        async with asyncio.timeout(2.0):
            process = await asyncio.create_subprocess_exec(
                binary,
                "--version",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await process.communicate()
            if process.returncode != 0:
                return ServiceHealth(
                    status="error",
                    error=stderr.decode("utf-8", errors="replace").strip(),
                )
            latency = (time.perf_counter() - start) * 1000
            return ServiceHealth(status="connected", latency_ms=round(latency, 2))
    except asyncio.TimeoutError:
        return ServiceHealth(status="unreachable", error="timeout")
    except FileNotFoundError:
        return ServiceHealth(status="unreachable", error=f"{binary} not found")
    except Exception as e:
        return ServiceHealth(status="error", error=str(e))

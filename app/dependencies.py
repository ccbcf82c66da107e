"""Shared dependencies for FastAPI endpoints"""
from fastapi import HTTPException

from app.config import settings

# Global instances
_search_engine = None


def init_search_engine() -> bool:
    """Load the influencer directory and build the search engine"""
    global _search_engine
    try:
        from app.core.search_engine import build_search_engine

        _search_engine = build_search_engine(
            settings.DB_PATH,
            influencers_table=settings.INFLUENCERS_TABLE,
            keywords_table=settings.KEYWORDS_TABLE,
        )
        print("✅ Search engine initialized")
        print(f"   • DB path: {settings.DB_PATH}")
        print(f"   • Influencers: {len(_search_engine.store)}")
        return True
    except FileNotFoundError as e:
        print(f"⚠️ {e}")
        return False
    except Exception as e:  # pylint: disable=broad-except
        print(f"❌ Error initializing search engine: {e}")
        return False


def get_search_engine():
    """Dependency to get search engine instance"""
    if _search_engine is None:
        raise HTTPException(
            status_code=503,
            detail="Search engine not initialized. Please ensure database is available."
        )
    return _search_engine


async def get_optional_search_engine():
    """Get search engine if available, None otherwise"""
    return _search_engine

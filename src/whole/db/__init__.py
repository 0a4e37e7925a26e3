from whole.db.adapter import DatabaseAdapter
from whole.db.gateway import QuoteGateway, SupabaseGateway

__all__ = ["DatabaseAdapter", "QuoteGateway", "SupabaseGateway"]

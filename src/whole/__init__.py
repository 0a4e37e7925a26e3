"""
Whole - bilingual daily quotes.

Core engine:
- Entitlement: premium status from subscription + trial window
- Feed: quote sequence with a free-tier browsing quota
- Likes: optimistic like/unlike synced to Supabase
- Widget: shared slot read by the home-screen widget

Onboarding lives in the sibling `onboarding` package.
"""

__version__ = "1.0.0"

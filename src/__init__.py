"""
Keyword Opportunity Engine

Competitor discovery and keyword opportunity analysis for a business:
1. Discovers competitors via DataForSEO (organic domains or Google Maps)
2. Ranks them by website similarity to the business's services
3. Extracts shared/unique keywords and selects diverse target keywords
4. Scores keyword ideas and groups them into opportunity buckets
"""

__version__ = "0.1.0"

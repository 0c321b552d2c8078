"""Prompt templates for article enrichment.

Every template asks for a single JSON object so replies can be validated
against the response schemas in `ai_enricher`.
"""

CATEGORIES = (
    "Bitcoin",
    "Ethereum",
    "DeFi",
    "NFTs",
    "Layer2",
    "Regulation",
    "Adoption",
    "Technology",
    "Trading",
    "Stablecoins",
    "Web3",
    "Gaming",
    "Metaverse",
    "Infrastructure",
    "Security",
)

SUMMARIZE_SYSTEM = "You are an expert crypto and blockchain news analyst. Respond only with JSON."

SUMMARIZE_USER = """Summarize the following news article in a clear, concise manner.
Focus on the key facts, implications, and relevance to the Web3/crypto community.

Title: {title}
Article: {content}

Respond with a JSON object:
{{"main_points": ["2-3 short bullet points"],
  "implications": "key implications for crypto/Web3",
  "relevance_score": <integer 1-10>}}"""

CATEGORIZE_SYSTEM = "You are a crypto news categorization expert. Respond only with JSON."

CATEGORIZE_USER = """Categorize the following news article.

Title: {title}
Content: {content}

Choose up to 3 of the most relevant categories from this list:
{categories}

Respond with a JSON object: {{"categories": ["..."]}}"""

KEYWORDS_SYSTEM = "You are a keyword extraction specialist for crypto content. Respond only with JSON."

KEYWORDS_USER = """Extract 5-10 keywords that would help users discover this article.
Focus on crypto projects and tokens, technical concepts, key people and
companies, and important events.

Title: {title}
Content: {content}

Respond with a JSON object: {{"keywords": ["..."]}}"""

RELEVANCE_SYSTEM = "You are a crypto news relevance assessor. Respond only with JSON."

RELEVANCE_USER = """Rate how relevant and important this article is to the crypto/Web3 community.
Consider market impact, technological significance, regulatory implications,
community interest and educational value.

Title: {title}
Content: {content}

Respond with a JSON object:
{{"score": <integer 1-10, 10 = most relevant>, "explanation": "one or two sentences"}}"""

DUPLICATE_SYSTEM = "You are a duplicate content detector for crypto news. Respond only with JSON."

DUPLICATE_USER = """Compare these two articles and decide whether they cover the same story or event.

Article 1:
Title: {title1}
Content: {content1}

Article 2:
Title: {title2}
Content: {content2}

Use "DUPLICATE" if they cover the same story or event, "SIMILAR" if they are
related but take different angles, and "DIFFERENT" otherwise.

Respond with a JSON object:
{{"similarity": "DUPLICATE" | "SIMILAR" | "DIFFERENT", "explanation": "brief reason"}}"""

TRANSLATE_SYSTEM = (
    "You are a professional translator specializing in cryptocurrency and blockchain "
    "content. Respond only with JSON."
)

TRANSLATE_USER = """Translate the following article to {language}.
Keep technical terms, token tickers and project names unchanged.

Title: {title}
Content: {content}

Respond with a JSON object: {{"title": "...", "content": "..."}}"""

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
}

"""
Prompt templates for article generation.

Every prompt asks for a bare JSON object ``{title, excerpt, body, tags}``;
``parse_generated_json`` in ``gemini_client`` tolerates code fences anyway.
"""

from __future__ import annotations

from newsroom.models.market import MarketSnapshot, WorldNewsArticle

MACRO_TOPIC_DESCRIPTIONS: dict[str, str] = {
    "fed-policy": "Federal Reserve monetary policy, interest rate decisions and guidance",
    "inflation": "inflation data (CPI, PCE) and its impact on markets",
    "employment": "labor market data, payrolls and unemployment trends",
    "gdp": "economic growth, GDP releases and recession indicators",
    "global-markets": "major international equity markets and cross-border flows",
    "commodities": "oil, gold and other commodity price movements",
    "crypto-market": "cryptocurrency market conditions and their link to risk assets",
    "sector-rotation": "rotation of capital between equity sectors",
}

_OUTPUT_FORMAT = """## Output Format
Return ONLY a JSON object with this exact structure (no markdown code blocks):
{
  "title": "Article title here",
  "excerpt": "A 1-2 sentence summary for the article card",
  "body": "The full article body in markdown format",
  "tags": ["tag1", "tag2"]
}"""


def _price_context(snapshot: MarketSnapshot) -> str:
    if snapshot.latest_bar is None:
        return "Price data unavailable"
    change = (
        f"{snapshot.change_percent:.2f}%" if snapshot.change_percent is not None else "N/A"
    )
    return (
        f"Current price: ${snapshot.latest_bar.close:.2f}, Change: {change}, "
        f"Volume: {snapshot.latest_bar.volume:,.0f}"
    )


def _news_context(snapshot: MarketSnapshot, limit: int) -> str:
    lines = []
    for i, item in enumerate(snapshot.news[:limit], start=1):
        summary = (item.summary or "No summary")[:200]
        lines.append(f'{i}. "{item.headline}" - {summary}')
    return "\n".join(lines) or "No recent news available"


def build_stock_prompt(
    symbol: str,
    snapshot: MarketSnapshot,
    is_breaking: bool = False,
    news_items: int = 3,
) -> str:
    article_type = "breaking news" if is_breaking else "routine market update"
    return f"""You are a professional financial journalist. Write a {article_type} article about {symbol}.

## Market Data
{_price_context(snapshot)}

## Recent News Headlines
{_news_context(snapshot, news_items)}

## Instructions
1. Write a professional, informative article about {symbol}'s current market situation
2. Include analysis of the price movement and any relevant news
3. Article should be 300-500 words, in markdown with ## headers and bullet points
4. Do NOT include the title in the body
5. Focus on facts and market analysis, avoid speculation

{_OUTPUT_FORMAT}

Tags should be categories such as "earnings", "tech-sector", "market-analysis", "breaking-news"."""


def build_world_news_prompt(news_items: list[WorldNewsArticle]) -> str:
    headlines = "\n".join(
        f"{i}. [{item.source or 'Unknown'}] {item.title}"
        + (f" - {item.description[:200]}" if item.description else "")
        for i, item in enumerate(news_items, start=1)
    )
    return f"""You are a senior news editor. Write one synthesized world news briefing covering the most important stories below and what they mean for financial markets.

## Headlines
{headlines}

## Instructions
1. Group related stories and lead with the most market-relevant one
2. Attribute facts to their sources; do not invent details
3. 400-600 words, markdown with ## headers
4. Do NOT include the title in the body

{_OUTPUT_FORMAT}"""


def build_macro_prompt(topic: str) -> str:
    description = MACRO_TOPIC_DESCRIPTIONS.get(topic, topic.replace("-", " "))
    return f"""You are a macroeconomic analyst. Write an explainer article on {description}.

## Instructions
1. Explain the current backdrop and the indicators investors watch
2. Describe how this theme typically affects equities, bonds and currencies
3. 400-600 words, markdown with ## headers and bullet points
4. Avoid specific price predictions; do NOT include the title in the body

{_OUTPUT_FORMAT}"""

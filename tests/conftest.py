import pytest
from datetime import datetime
from unittest.mock import MagicMock

from article_intel.schemas import SelectorConfig, ThreatRecord, ThreatType


@pytest.fixture
def sample_article_html():
    return """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Exchange Server flaw exploited - Example News</title>
<meta property="article:published_time" content="2024-03-10T08:30:00Z">
</head>
<body>
<nav><a href="/">Home</a> <a href="/news">News</a></nav>
<article>
<h1 class="headline">Exchange Server flaw exploited in attacks</h1>
<div class="byline">By Jane Smith</div>
<div class="article-body">
<p>Microsoft warned that attackers are exploiting a critical flaw in Exchange Server.</p>
<p>The company urged administrators to install the latest cumulative update without delay.</p>
</div>
</article>
<footer>Copyright Example News</footer>
</body>
</html>"""


@pytest.fixture
def sample_selectors():
    return SelectorConfig(
        title_selector="h1.headline",
        content_selector=".article-body",
        author_selector=".byline",
    )


@pytest.fixture
def preprocessed_text():
    return (
        "Title: Exchange servers hit by new exploit\n"
        "Author: Jane Smith\n"
        "Date: March 10, 2024\n"
        "Content: Attackers are exploiting a flaw in on-premises Exchange servers.\n\n"
        "Administrators should install the March cumulative update."
    )


@pytest.fixture
def json_ld_html():
    return """<html><head>
<script type="application/ld+json">
{"@context": "https://schema.org", "@type": "NewsArticle",
 "headline": "Patch Tuesday", "datePublished": "2024-02-20T09:00:00+00:00"}
</script>
</head><body><p>Body text.</p></body></html>"""


@pytest.fixture
def cve_content():
    return "CVE-2024-1234 critical vulnerability allows remote code execution in Exchange Server"


@pytest.fixture
def fixed_now():
    return datetime(2024, 5, 10, 12, 0)


@pytest.fixture
def mock_llm_client():
    client = MagicMock()
    client.provider = "openai"
    client.complete_json.return_value = {
        "title": "Exchange Server flaw exploited in attacks",
        "content": "Microsoft warned that attackers are exploiting a critical flaw in Exchange Server.",
        "author": "Jane Smith",
        "publishDate": "March 10, 2024",
        "confidence": 0.9,
    }
    return client


@pytest.fixture
def ransomware_threat():
    return ThreatRecord(
        type=ThreatType.RANSOMWARE,
        name="BlackCat",
        details='Ransomware identified as "BlackCat" in the article title.',
    )


@pytest.fixture
def zero_day_threat():
    return ThreatRecord(
        type=ThreatType.ZERO_DAY,
        name="Follina",
        details="An unpatched zero-day vulnerability allows remote code execution.",
        cve="CVE-2022-30190",
    )

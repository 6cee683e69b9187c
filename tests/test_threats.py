import pytest

from article_intel.schemas import ThreatType
from article_intel.threats import (
    BlockedNamePolicy,
    MinimumOccurrencePolicy,
    OccurrencePolicy,
    ThreatAnalyzer,
    truncate_name,
)

NIGHTFALL_CONTENT = (
    'Researchers tracked a ransomware campaign dubbed "Nightfall" that encrypts file servers. '
    "Nightfall operators demand payment in cryptocurrency and leak stolen data."
)

FOUR_CVES = (
    "CVE-2024-0001 affects the print spooler service. "
    "CVE-2024-0002 affects the kernel transaction manager. "
    "CVE-2024-0003 affects the telephony service. "
    "CVE-2024-0004 affects the network file system. "
    "Admins should prioritize CVE-2024-0001 first."
)


class AcceptAll(OccurrencePolicy):
    def accepts(self, name, content):
        return True


class TestPolicies:

    def test_truncate_name(self):
        assert truncate_name("A" * 30) == "A" * 30
        assert truncate_name("A" * 31) == "A" * 27 + "..."

    def test_minimum_occurrence_counts_whole_words(self):
        policy = MinimumOccurrencePolicy(2)

        assert policy.accepts("Akira", "Akira struck twice; akira again.")
        assert not policy.accepts("Akira", "Akira struck; Akiras are rare.")

    def test_blocked_names(self):
        policy = BlockedNamePolicy()

        assert policy.is_blocked("PoisonSeed campaign")
        assert not policy.is_blocked("BlackCat")
        assert not policy.is_blocked(None)


class TestProducts:

    @pytest.fixture(autouse=True)
    def setup_analyzer(self):
        self.analyzer = ThreatAnalyzer()

    def test_exchange_server_with_year(self):
        products = self.analyzer.extract_products("Administrators running Exchange Server 2019 should patch.")

        assert len(products) == 1
        assert products[0].name == "Microsoft Exchange Server"
        assert products[0].versions == "2019"
        assert products[0].icon == "server"

    def test_version_keyword(self):
        products = self.analyzer.extract_products("Windows 10 version 1809 is affected.")

        assert products[0].name == "Windows 10"
        assert products[0].versions == "1809"

    def test_table_order_and_no_duplicates(self):
        products = self.analyzer.extract_products("Azure and Windows 10 and again Azure.")

        assert [p.name for p in products] == ["Windows 10", "Azure"]

    def test_no_products(self):
        assert self.analyzer.extract_products("Nothing relevant here.") == []


class TestThreatAnalyzer:

    @pytest.fixture(autouse=True)
    def setup_analyzer(self):
        self.analyzer = ThreatAnalyzer()

    def test_cve_threat(self, cve_content):
        threats = self.analyzer.extract_threats(cve_content)

        assert len(threats) == 1
        assert threats[0].cve == "CVE-2024-1234"
        assert threats[0].type == ThreatType.VULNERABILITY
        assert threats[0].name == "RCE Vulnerability"
        assert threats[0].details == cve_content

    def test_cve_bulletin_name(self):
        content = "Microsoft bulletin MS-17-010 fixes CVE-2017-0144 in the SMB server component."

        assert self.analyzer.extract_threats(content)[0].name == "MS-17-010"

    def test_cve_lowercase_normalized(self):
        threats = self.analyzer.extract_threats("Patch for cve-2023-23397 released today for Outlook users.")

        assert threats[0].cve == "CVE-2023-23397"

    def test_zero_day_context(self):
        content = "CVE-2022-30190 is an actively exploited zero-day vulnerability in the support tool."

        assert self.analyzer.extract_threats(content)[0].type == ThreatType.ZERO_DAY

    def test_named_pattern_threat(self):
        threats = self.analyzer.extract_threats(NIGHTFALL_CONTENT)

        assert len(threats) == 1
        assert threats[0].name == "Nightfall"
        assert threats[0].type == ThreatType.RANSOMWARE
        assert threats[0].cve is None

    def test_single_mention_rejected(self):
        content = 'A ransomware campaign dubbed "Nightfall" hit file servers this week.'

        assert self.analyzer.extract_threats(content) == []

    def test_occurrence_policy_injected(self):
        content = 'A ransomware campaign dubbed "Nightfall" hit file servers this week.'
        analyzer = ThreatAnalyzer(occurrence_policy=AcceptAll())

        assert [t.name for t in analyzer.extract_threats(content)] == ["Nightfall"]

    def test_blocked_name_rejected(self):
        content = NIGHTFALL_CONTENT.replace("Nightfall", "PoisonSeed")

        assert self.analyzer.extract_threats(content) == []

    def test_deduplicated_and_capped(self):
        threats = self.analyzer.extract_threats(FOUR_CVES)

        cves = [t.cve for t in threats]
        assert len(threats) == 3
        assert len(set(cves)) == 3
        assert set(cves) <= {"CVE-2024-0001", "CVE-2024-0002", "CVE-2024-0003", "CVE-2024-0004"}

    def test_cves_with_same_derived_name_collapse(self):
        content = "CVE-2024-1111 and CVE-2024-2222 both allow remote code execution in the gateway."

        threats = self.analyzer.extract_threats(content)

        assert [t.name for t in threats] == ["RCE Vulnerability"]
        assert threats[0].cve == "CVE-2024-1111"

    def test_title_threat_prepended(self, cve_content):
        threats = self.analyzer.extract_threats(
            cve_content, title="BlackCat ransomware targets healthcare providers"
        )

        assert threats[0].name == "BlackCat"
        assert threats[0].type == ThreatType.RANSOMWARE
        assert threats[1].cve == "CVE-2024-1234"

    def test_title_threat_counts_toward_cap(self):
        threats = self.analyzer.extract_threats(
            FOUR_CVES, title="BlackCat ransomware targets healthcare providers"
        )

        assert len(threats) == 3
        assert threats[0].name == "BlackCat"

    def test_title_threat_not_repeated(self):
        content = NIGHTFALL_CONTENT
        threats = self.analyzer.extract_threats(content, title="Nightfall ransomware hits file servers")

        assert [t.name for t in threats] == ["Nightfall"]

    def test_title_cve_not_repeated(self, cve_content):
        threats = self.analyzer.extract_threats(cve_content, title="Patch now: CVE-2024-1234 in Exchange")

        assert len(threats) == 1


class TestThreatFromTitle:

    @pytest.fixture(autouse=True)
    def setup_analyzer(self):
        self.analyzer = ThreatAnalyzer()

    def test_named_ransomware(self):
        threat = self.analyzer.threat_from_title("BlackCat ransomware targets healthcare providers")

        assert threat.name == "BlackCat"
        assert threat.type == ThreatType.RANSOMWARE
        assert threat.details == 'Ransomware identified as "BlackCat" in the article title.'

    def test_cve_in_title(self):
        threat = self.analyzer.threat_from_title("Patch now: CVE-2024-21413 under attack")

        assert threat.name == "CVE-2024-21413 Vulnerability"
        assert threat.cve == "CVE-2024-21413"
        assert threat.type == ThreatType.VULNERABILITY

    def test_long_cve_name_truncated(self):
        threat = self.analyzer.threat_from_title("CVE-2024-123456789 exploited in attacks")

        assert threat.name == "CVE-2024-123456789 Vulnerab..."
        assert len(threat.name) == 30
        assert threat.cve == "CVE-2024-123456789"

    def test_quoted_name(self):
        threat = self.analyzer.threat_from_title('Researchers detail "Snowblind" on Android banking apps')

        assert threat.name == "Snowblind"
        assert threat.type == ThreatType.OTHER

    def test_stoplisted_vendor_name(self):
        assert self.analyzer.threat_from_title("Microsoft ransomware warning issued") is None

    def test_short_or_missing_title(self):
        assert self.analyzer.threat_from_title("Short") is None
        assert self.analyzer.threat_from_title(None) is None

    def test_extract_threat_name_skips_generic_words(self):
        assert self.analyzer.extract_threat_name('a campaign dubbed "Security" was seen') is None

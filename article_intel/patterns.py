"""
Pattern tables for the threat analyzer.

Everything here is data: the analyzer modules iterate these tables and never
hard-code a product, threat category or vocabulary word themselves.
"""

import re
from typing import NamedTuple

from .schemas import ThreatType


class ProductPattern(NamedTuple):
    name: str
    pattern: re.Pattern
    icon: str


class ThreatPattern(NamedTuple):
    type: ThreatType
    pattern: re.Pattern


# --- Products ---

PRODUCT_PATTERNS = [
    ProductPattern('Windows 11', re.compile(r'windows\s*11', re.I), 'windows'),
    ProductPattern('Windows 10', re.compile(r'windows\s*10', re.I), 'windows'),
    ProductPattern('Windows Server', re.compile(r'windows\s*server', re.I), 'server'),
    ProductPattern('Microsoft Exchange Server', re.compile(r'exchange\s*server', re.I), 'server'),
    ProductPattern('Microsoft Exchange Online', re.compile(r'exchange\s*online', re.I), 'cloud'),
    ProductPattern('Microsoft 365', re.compile(r'microsoft\s*365|office\s*365', re.I), 'microsoft'),
    ProductPattern('Azure', re.compile(r'azure', re.I), 'cloud'),
    ProductPattern('Office', re.compile(r'\boffice\b|\bword\b|\bexcel\b|\bpowerpoint\b|\boutlook\b', re.I), 'file-word'),
    ProductPattern('SharePoint', re.compile(r'sharepoint', re.I), 'share-nodes'),
    ProductPattern('SQL Server', re.compile(r'sql\s*server', re.I), 'database'),
    ProductPattern('Active Directory', re.compile(r'active\s*directory', re.I), 'sitemap'),
    ProductPattern('Defender', re.compile(r'defender', re.I), 'shield-halved'),
    ProductPattern('OneDrive', re.compile(r'onedrive', re.I), 'cloud'),
    ProductPattern('Teams', re.compile(r'\bteams\b', re.I), 'users'),
    ProductPattern('Internet Explorer', re.compile(r'internet\s*explorer|\bie\s*\d+\b', re.I), 'globe'),
    ProductPattern('Edge', re.compile(r'\bedge\b', re.I), 'edge'),
    ProductPattern('.NET', re.compile(r'\.net\b', re.I), 'code'),
    ProductPattern('Visual Studio', re.compile(r'visual\s*studio', re.I), 'code'),
    ProductPattern('Skype', re.compile(r'skype', re.I), 'comment'),
    ProductPattern('Surface', re.compile(r'surface', re.I), 'tablet'),
    ProductPattern('Xbox', re.compile(r'xbox', re.I), 'gamepad'),
]

# Characters after a product mention searched for a version
VERSION_WINDOW = 200

# Priority order; "{product}" is replaced with the escaped product mention
VERSION_PATTERNS = [
    r'version\s+(\d+(?:\.\d+)*)',
    r'\bv(\d+(?:\.\d+)*)\b',
    r'\b(\d+\.\d+(?:\.\d+)*)\b',
    r'{product}\s+(20\d{2})',
    r'\b(20\d{2})[^\d]+(?:20\d{2})\b',
]


# --- Threats ---

CVE_PATTERN = re.compile(r'CVE-\d{4}-\d{4,}', re.I)

# Ordered: the first category matching a CVE context wins
THREAT_PATTERNS = [
    ThreatPattern(ThreatType.ZERO_DAY, re.compile(
        r'active\s+zero[\s-]*day|exploited\s+zero[\s-]*day|unpatched\s+zero[\s-]*day'
        r'|zero[\s-]*day\s+vulnerability|\b0day\s+exploit\b', re.I)),
    ThreatPattern(ThreatType.VULNERABILITY, re.compile(
        r'critical\s+vulnerability|high\s+severity\s+vulnerability|security\s+vulnerability'
        r'|CVE-\d{4}-\d{4,}|remote\s+code\s+execution|privilege\s+escalation', re.I)),
    ThreatPattern(ThreatType.RANSOMWARE, re.compile(
        r'ransomware\s+attack|ransomware\s+campaign|ransomware\s+group'
        r'|file\s+encryption\s+ransomware', re.I)),
    ThreatPattern(ThreatType.MALWARE, re.compile(
        r'sophisticated\s+malware|targeted\s+malware|malware\s+campaign|detected\s+malware'
        r'|malware\s+infection|trojan\s+malware|backdoor\s+malware', re.I)),
    ThreatPattern(ThreatType.EXPLOIT, re.compile(
        r'actively\s+exploited|exploit\s+in\s+the\s+wild|exploitation\s+attempts'
        r'|remote\s+exploit|memory\s+corruption\s+exploit', re.I)),
]

# CVE context window: characters before and after the identifier
CVE_CONTEXT_BEFORE = 150
CVE_CONTEXT_AFTER = 300

# Pattern-anchored context window around a category match
MATCH_CONTEXT_BEFORE = 200
MATCH_CONTEXT_AFTER = 400

BULLETIN_ID_PATTERN = re.compile(r'\b(MS-\d{2}-\d{3,})\b')

VULNERABILITY_CLASS_PATTERN = re.compile(
    r'\b(remote code execution|privilege escalation|elevation of privilege'
    r'|information disclosure|denial of service)\b', re.I)

VULNERABILITY_CLASS_LABELS = {
    'remote code execution': 'RCE Vulnerability',
    'privilege escalation': 'Privilege Escalation',
    'elevation of privilege': 'Privilege Escalation',
    'information disclosure': 'Info Disclosure',
    'denial of service': 'DoS Vulnerability',
}

# Capitalized words; the patterns below are case-insensitive everywhere else
_NAME = r'((?-i:[A-Z])[A-Za-z0-9]+(?:[-_][A-Za-z0-9]+| (?-i:[A-Z])[A-Za-z0-9]+)*)'
_THREAT_NOUN = r'(?:malware|ransomware|vulnerability|trojan|backdoor|exploit|attack|campaign)'

# Name heuristics for pattern-anchored threats, most reliable first
THREAT_NAME_PATTERNS = [
    re.compile(r'(?:dubbed|named|called)\s+["\']?' + _NAME + r'["\']?'
               r'(?:\s+(?:threat|malware|ransomware|vulnerability|trojan|backdoor|exploit|campaign))?', re.I),
    re.compile(r'CVE-\d{4}-\d{4,}\s+(?:is|describes|refers to)\s+(?:a|an)\s+(.+?)(?:\.|,|\s+which|\s+that)', re.I),
    re.compile(r'\b' + _NAME + r'\s+' + _THREAT_NOUN +
               r'\b\s+(?:discovered|identified|affecting|targeting|exploits|compromises)', re.I),
    re.compile(_THREAT_NOUN + r'\s+(?:known|identified|referred to|dubbed)\s+(?:as|by)\s+["\']?' + _NAME + r'["\']?', re.I),
    re.compile(r'["\']((?-i:[A-Z])[A-Za-z0-9]+(?:[-_][A-Za-z0-9]+)+)["\']\s+'
               r'(?:malware|ransomware|vulnerability|trojan|backdoor|campaign)', re.I),
    re.compile(r'(?:threat\s+|hacker\s+|attacker\s+)?(?:group|actor|APT)\s+(?:known as|called|named)\s+["\']?' + _NAME + r'["\']?', re.I),
]

# Generic words never accepted as a threat name
NAME_STOPLIST = frozenset([
    "vulnerability", "malware", "exploit", "attack", "ransomware", "zero-day",
    "zero day", "0day", "threat", "security", "issue", "flaw", "bug", "problem",
    "microsoft", "windows", "azure", "exchange", "office", "defender",
    "update", "patch", "fixed", "mitigated", "discovered", "detected", "report",
    "advisory", "bulletin", "alert", "notice",
    "january", "february", "march", "april", "may", "june", "july", "august",
    "september", "october", "november", "december",
    "article", "researcher", "vendor", "critical", "important",
])

DETERMINER_PATTERN = re.compile(
    r'^(the|this|that|these|those|some|any|all|various|multiple|several)$', re.I)

# Detail sentences, most descriptive first
THREAT_DETAIL_PATTERNS = [
    re.compile(r'([^.!?]+(?:vulnerability|exploit|allows|enables|permits|lets|giving|grants)[^.!?]+)', re.I),
    re.compile(r'([^.!?]+(?:remote code execution|privilege escalation|information disclosure'
               r'|denial of service)[^.!?]+)', re.I),
    re.compile(r'([^.!?]+(?:affected by|impacted by|susceptible to)[^.!?]+)', re.I),
]

# --- Title-derived threat ---

TITLE_MIN_LENGTH = 10

_TITLE_NOUN = r'(?:malware|ransomware|trojan|worm|virus|exploit|backdoor|attack|campaign)'

# Group 1 holds the name
TITLE_THREAT_PATTERNS = [
    re.compile(r'\b((?-i:[A-Z])[a-zA-Z0-9_-]{2,})\s+' + _TITLE_NOUN, re.I),
    re.compile(r'\b' + _TITLE_NOUN + r'\s+(?:called|dubbed|named)\s+["\']?((?-i:[A-Z])[a-zA-Z0-9_-]{2,})["\']?', re.I),
    re.compile(r'["\']((?-i:[A-Z])[a-zA-Z0-9_-]{3,})["\']', re.I),
]

TITLE_STOPLIST = frozenset(["microsoft", "windows", "security", "attack", "update", "vulnerability"])

# Title keyword -> threat type; first hit wins
TITLE_TYPE_KEYWORDS = [
    (('ransomware',), ThreatType.RANSOMWARE),
    (('malware',), ThreatType.MALWARE),
    (('vulnerability',), ThreatType.VULNERABILITY),
    (('zero-day', '0day'), ThreatType.ZERO_DAY),
    (('exploit',), ThreatType.EXPLOIT),
]

# Lower rank sorts first
THREAT_TYPE_RANK = {
    ThreatType.ZERO_DAY: 0,
    ThreatType.RANSOMWARE: 1,
    ThreatType.VULNERABILITY: 2,
    ThreatType.MALWARE: 3,
    ThreatType.EXPLOIT: 4,
    ThreatType.OTHER: 5,
}

MAX_THREATS = 3
MAX_NAME_LENGTH = 30


# --- Severity ---

# Evaluation order doubles as the tie-break order
SEVERITY_WORDS = {
    'critical': ['critical', 'severe', 'dangerous', 'urgent', 'emergency'],
    'high': ['high', 'serious', 'major', 'significant'],
    'medium': ['medium', 'moderate', 'important'],
    'low': ['low', 'minor', 'minimal', 'small'],
}

# Threat type -> points added per severity level
SEVERITY_BONUSES = {
    ThreatType.ZERO_DAY: {'critical': 3},
    ThreatType.RANSOMWARE: {'critical': 2, 'high': 1},
    ThreatType.VULNERABILITY: {'high': 1},
}


# --- Summary ---

SUMMARY_MARKERS = [
    re.compile(r'in summary:', re.I),
    re.compile(r'executive summary:', re.I),
    re.compile(r'summary:', re.I),
    re.compile(r'key takeaways:', re.I),
    re.compile(r'tl;?dr:', re.I),
    re.compile(r'overview:', re.I),
]

CONCLUSION_MARKERS = [
    re.compile(r'in conclusion:', re.I),
    re.compile(r'to conclude:', re.I),
    re.compile(r'conclusion:', re.I),
    re.compile(r'finally,', re.I),
]

SECURITY_TERMS_PATTERN = re.compile(
    r'security|vulnerability|threat|microsoft|attack|malware|ransomware|exploit', re.I)

LEAD_PARAGRAPH_MIN = 30
LEAD_PARAGRAPH_MAX = 400

# Second summary sentence per primary threat type
THREAT_SUMMARY_ACTIONS = {
    ThreatType.ZERO_DAY: "Active exploitation is occurring with no patch currently available.",
    ThreatType.RANSOMWARE: "Organizations need immediate backup verification and enhanced security monitoring.",
    ThreatType.VULNERABILITY: "Microsoft recommends applying available security patches immediately.",
    ThreatType.MALWARE: "Updated threat detection and security controls are essential to mitigate this threat.",
}
DEFAULT_SUMMARY_ACTION = "Microsoft advises implementing relevant security controls as outlined in their advisory."


# --- Technical details ---

ATTRIBUTION_CLAUSE_PATTERN = re.compile(
    r'\b(?:according to|reported by|said|says|stated|mentioned by|authored by|published by'
    r'|wrote|writes|posted|article by)\b.*?[,.]', re.I)

DATE_CLAUSE_PATTERN = re.compile(
    r'\b(?:on|in) (?:Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday|January|February'
    r'|March|April|May|June|July|August|September|October|November|December)\b.*?[,.]', re.I)

# (label, pattern) in reporting order
IOC_PATTERNS = [
    ('md5', re.compile(r'\b[a-fA-F0-9]{32}\b')),
    ('sha1', re.compile(r'\b[a-fA-F0-9]{40}\b')),
    ('sha256', re.compile(r'\b[a-fA-F0-9]{64}\b')),
    ('url', re.compile(r'https?://[^\s<>"\']+')),
    ('file_path', re.compile(r'[A-Z]:\\[^\s<>"\']+')),
    ('registry_key', re.compile(r'HKEY_[A-Z_\\]+')),
    ('ipv4', re.compile(r'\b(?:\d{1,3}\.){3}\d{1,3}\b')),
]

NEWS_DOMAINS_PATTERN = re.compile(
    r'bleepingcomputer\.com|thehackernews\.com|zdnet\.com|krebsonsecurity\.com'
    r'|darkreading\.com|securityweek\.com|threatpost\.com', re.I)

MAX_INDICATORS = 3

SECURITY_SENTENCE_PATTERN = re.compile(
    r'exploit|vulnerability|patch|zero-day|attack vector|security flaw|backdoor|code execution', re.I)

ARTICLE_REFERENCE_PATTERN = re.compile(r'according to|reported by|the article|this article', re.I)


# --- Recommendations ---

URGENT_ACTIONS = [
    "1. Apply security patches immediately",
    "2. Monitor systems for suspicious activity",
    "3. Implement Microsoft's recommended workarounds",
]

ROUTINE_ACTIONS = [
    "1. Apply security patches in your next update cycle",
    "2. Review Microsoft security advisories",
    "3. Test patches in non-production first",
]

RANSOMWARE_ACTIONS = [
    "• Verify offline backups are current and tested",
    "• Review incident response plan",
]

ZERO_DAY_ACTIONS = [
    "• Implement Microsoft's emergency mitigations",
    "• Increase security monitoring",
]

# Product name keyword -> action line
PRODUCT_ACTIONS = [
    ('Exchange', "• Exchange: Run Health Checker, check logs"),
    ('Windows', "• Windows: Enable auto-updates, verify Defender status"),
    ('Azure', "• Azure: Review Security Center recommendations"),
]

MAX_PRODUCT_ACTION_PRODUCTS = 2

GENERAL_PRODUCT_ADVICE = [
    "GENERAL SECURITY RECOMMENDATIONS:",
    "• Keep all Microsoft products updated with security patches",
    "• Follow Microsoft Security Response Center for announcements",
    "• Implement standard security practices for your Microsoft products",
]

BEST_PRACTICE_ADVICE = [
    "SECURITY BEST PRACTICES:",
    "• Maintain regular security updates",
    "• Monitor trusted security advisory sources",
    "• Implement defense-in-depth practices",
]

SOURCES_FOOTER = [
    "\nSOURCES:",
    "Microsoft Security Response Center: https://msrc.microsoft.com/",
]

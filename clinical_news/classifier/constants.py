"""Category patterns and the controlled tag vocabulary."""

from typing import Final

from clinical_news.models import NewsCategory, NewsSource


# Evaluated case-insensitively against title + description + content.
# Table order is the order pattern-derived categories are appended in.
CATEGORY_PATTERNS: Final[dict[NewsCategory, tuple[str, ...]]] = {
    NewsCategory.DRUG_APPROVAL: (
        r"approval",
        r"approved",
        r"fda approves",
        r"granted",
        r"authori[sz]ation",
        r"authori[sz]ed",
        r"new drug",
        r"clearance",
    ),
    NewsCategory.CLINICAL_TRIAL: (
        r"trial",
        r"phase [1-4]\b",
        r"phase i{1,3}v?\b",
        r"study results",
        r"clinical study",
        r"efficacy",
        r"participants",
        r"patients enrolled",
        r"clinical data",
        r"cohort",
        r"placebo",
        r"randomi[sz]ed",
    ),
    NewsCategory.REGULATORY: (
        r"regulatory",
        r"regulation",
        r"\bfda\b",
        r"\bema\b",
        r"health canada",
        r"submission",
        r"guidance",
        r"compliance",
        r"pending",
        r"requirement",
    ),
    NewsCategory.MEDICAL_DEVICE: (
        r"device",
        r"equipment",
        r"implant",
        r"diagnostic",
        r"medical technology",
        r"wearable",
        r"imaging",
        r"monitor",
        r"sensor",
        r"in vitro diagnostics",
    ),
    NewsCategory.RESEARCH: (
        r"research",
        r"study",
        r"investigation",
        r"finding",
        r"discovery",
        r"journal",
        r"publication",
        r"published",
        r"scientific",
        r"innovation",
    ),
    NewsCategory.PHARMA: (
        r"pharma",
        r"drug ?maker",
        r"manufacturer",
        r"biotech",
        r"company announces",
        r"pipeline",
        r"investment",
        r"acquisition",
    ),
    NewsCategory.SAFETY_ALERT: (
        r"alert",
        r"warning",
        r"recall",
        r"adverse",
        r"side effect",
        r"safety concern",
        r"contraindication",
        r"precaution",
        r"\brisks?\b",
        r"danger",
    ),
}

# Exactly one fallback category when nothing else applies
FALLBACK_CATEGORY_BY_SOURCE: Final[dict[NewsSource, NewsCategory]] = {
    NewsSource.DRUGS_COM: NewsCategory.PHARMA,
    NewsSource.FDA: NewsCategory.REGULATORY,
}
DEFAULT_FALLBACK_CATEGORY: Final = NewsCategory.RESEARCH

MAX_TAGS: Final = 10

# Controlled vocabulary as (tag, pattern) in emission order. Tags that the
# relevance scorer matches against preferences (phases, statuses, areas)
# come first so the cap never drops them in favour of descriptive tags.
TAG_VOCABULARY: Final[tuple[tuple[str, str], ...]] = (
    # Trial phases
    ("Early Phase", r"\b(?:early[- ]phase|pre-?clinical|first[- ]in[- ]human)\b"),
    ("Phase 1", r"\bphase (?:1|i)\b(?![/-])"),
    ("Phase 2", r"\bphase (?:2|ii)(?:a|b)?\b(?![/-])|\bphase (?:1|i)[/-](?:2|ii)\b"),
    ("Phase 3", r"\bphase (?:3|iii)(?:a|b)?\b"),
    ("Phase 4", r"\bphase (?:4|iv)\b|\bpost-?marketing\b"),
    # Study statuses
    ("Recruiting", r"(?<!not )(?<!yet )\brecruiting\b"),
    ("Active Not Recruiting", r"\bactive,? not recruiting\b|\bfully enrolled\b"),
    ("Completed", r"\b(?:study|trial) (?:completed|completion)\b|\bcompleted (?:the )?(?:study|trial)\b"),
    ("Not Yet Recruiting", r"\bnot yet recruiting\b"),
    ("Suspended", r"\bsuspended\b|\bclinical hold\b"),
    ("Terminated", r"\bterminated\b|\bdiscontinued\b"),
    ("Withdrawn", r"\bwithdrawn\b"),
    ("Enrolling By Invitation", r"\benrolling by invitation\b|\binvitation only\b"),
    # Therapeutic areas
    ("Oncology", r"\boncolog\w*|\bcancers?\b|\btumou?rs?\b|\bcarcinomas?\b|\bleuka?emia\b|\blymphomas?\b|\bmelanoma\b"),
    ("Cardiology", r"\bcardi(?:ac|ology|ovascular)\b|\bheart\b|\bhypertension\b|\batrial fibrillation\b"),
    ("Neurology", r"\bneurolog\w*|\balzheimer\w*|\bparkinson\w*|\bepilep\w*|\bmultiple sclerosis\b|\bmigraine\b"),
    ("Immunology", r"\bimmunolog\w*|\bautoimmune\b|\brheumatoid\b|\blupus\b|\bpsoriasis\b"),
    ("Infectious Disease", r"\binfectio(?:n|ns|us)\b|\bvaccines?\b|\bantivirals?\b|\bhiv\b|\bhepatitis\b|\binfluenza\b"),
    ("Rare Diseases", r"\brare diseases?\b|\borphan drug\b|\bgene therapy\b|\bcystic fibrosis\b|\bsickle cell\b|\bhemophilia\b"),
    ("Endocrinology", r"\bendocrin\w*|\bdiabet\w*|\bthyroid\b|\bobesity\b|\binsulin\b"),
    # General topics
    ("Clinical Trial", r"\bclinical trials?\b"),
    ("FDA Approval", r"\bfda approv\w*"),
    ("Safety Alert", r"\bsafety alerts?\b"),
    ("Drug Development", r"\bdrug development\b"),
    ("Medical Device", r"\bmedical devices?\b"),
    ("Breakthrough", r"\bbreakthrough\b"),
    ("Emergency Use", r"\bemergency use\b"),
    ("Adverse Event", r"\badverse (?:events?|reactions?)\b"),
    ("Efficacy", r"\befficacy\b"),
    ("Enrollment", r"\benrol(?:l)?ment\b"),
    ("Recruitment", r"\brecruitment\b"),
    ("Protocol", r"\bprotocols?\b"),
    ("Regulatory", r"\bregulatory\b"),
    ("Approval", r"\bapprov(?:al|ed|es)\b"),
    ("Authorization", r"\bauthori[sz]ation\b"),
    ("Safety", r"\bsafety\b"),
    ("Treatment", r"\btreatments?\b"),
    ("Results", r"\bresults\b"),
    ("Research", r"\bresearch\b"),
    ("Study", r"\bstud(?:y|ies)\b"),
    ("Pharma", r"\bpharma\w*"),
    # Conditions
    ("Heart Failure", r"\bheart failure\b"),
    ("Stroke", r"\bstrokes?\b"),
    ("Asthma", r"\basthma\b"),
    ("COPD", r"\bcopd\b"),
    ("Arthritis", r"\barthritis\b"),
    ("Depression", r"\bdepressi(?:on|ve)\b"),
    ("Anxiety", r"\banxiety\b"),
    ("Schizophrenia", r"\bschizophrenia\b"),
    ("Bipolar", r"\bbipolar\b"),
    ("COVID-19", r"\bcovid(?:-19)?\b|\bcoronavirus\b|\bsars-cov-2\b"),
    # Drug classes from INN stems
    ("Monoclonal Antibody", r"\b[a-z]{3,}mab\b|\bmonoclonal antibod(?:y|ies)\b"),
    ("Kinase Inhibitor", r"\b[a-z]{3,}nib\b|\bkinase inhibitors?\b"),
    ("Proton Pump Inhibitor", r"\b[a-z]{2,}prazole\b"),
    ("Statin", r"\b[a-z]{3,}statin\b|\bstatins?\b"),
    ("Angiotensin Receptor Blocker", r"\b[a-z]{3,}sartan\b"),
    ("ACE Inhibitor", r"\b[a-z]{3,}pril\b|\bace inhibitors?\b"),
    ("Calcium Channel Blocker", r"\b[a-z]{3,}dipine\b"),
    ("SSRI/SNRI", r"\b[a-z]{3,}xetine\b"),
    ("Antibiotic", r"\b[a-z]{3,}(?:mycin|cillin)\b|\bantibiotics?\b"),
)

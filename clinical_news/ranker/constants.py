"""Curated keyword tables used by the relevance scorer."""

from typing import Final

from clinical_news.models import NewsSource


THERAPEUTIC_AREA_KEYWORDS: Final[dict[str, tuple[str, ...]]] = {
    "oncology": (
        "cancer", "oncology", "tumor", "carcinoma", "leukemia", "lymphoma",
        "melanoma", "neoplasm", "metastatic", "sarcoma", "myeloma",
        "glioblastoma", "immunotherapy", "chemotherapy", "radiation therapy",
        "targeted therapy", "oncolytic", "malignant", "biopsy", "remission",
        "oncogene", "pd-1", "pd-l1", "checkpoint inhibitor", "cart-t", "car-t",
        "tki", "tyrosine kinase", "her2", "brca", "egfr", "alk",
        "breast cancer", "lung cancer", "colorectal cancer", "prostate cancer",
        "pancreatic cancer",
    ),
    "cardiology": (
        "heart", "cardiac", "cardiovascular", "hypertension", "atherosclerosis",
        "stroke", "arrhythmia", "myocardial infarction", "heart attack",
        "heart failure", "coronary artery", "atrial fibrillation", "ventricular",
        "angina", "cholesterol", "statin", "anticoagulant", "beta blocker",
        "thrombosis", "pacemaker", "defibrillator", "valve", "cardiomyopathy",
        "aortic", "pulmonary hypertension", "cardiac arrest", "tachycardia",
        "bradycardia", "congestive heart failure", "chf",
        "acute coronary syndrome", "acs", "stent", "angioplasty", "cabg",
        "bypass surgery",
    ),
    "neurology": (
        "brain", "neural", "neurology", "alzheimer", "parkinson", "dementia",
        "epilepsy", "seizure", "multiple sclerosis", "ms", "migraine",
        "amyotrophic lateral sclerosis", "als", "huntington", "stroke", "tbi",
        "traumatic brain injury", "concussion", "neuropathy",
        "neurodegenerative", "spinal cord", "neurotransmitter", "neurotoxicity",
        "neurocognitive", "neuropsychiatric", "neuroimaging", "neuroplasticity",
        "neuromodulation", "cerebrospinal fluid", "csf", "encephalopathy",
        "myelopathy", "neurodevelopmental", "neuroprotective", "neurological",
    ),
    "immunology": (
        "immune", "immunology", "autoimmune", "allergy", "inflammation", "lupus",
        "rheumatoid", "arthritis", "psoriasis", "inflammatory bowel disease",
        "ibd", "crohn", "ulcerative colitis", "multiple sclerosis",
        "type 1 diabetes", "celiac", "sjogren", "scleroderma", "vasculitis",
        "transplant rejection", "graft-versus-host", "gvhd", "immunosuppressant",
        "biologics", "tnf inhibitor", "jak inhibitor", "il-inhibitor",
        "cytokine", "immunotherapy", "immunomodulator", "monoclonal antibody",
        "mab", "antibody drug", "immune checkpoint", "immunoglobulin", "igg",
        "b cell", "t cell", "nk cell", "macrophage", "neutrophil",
    ),
    "infectious_disease": (
        "infection", "infectious", "bacterial", "viral", "fungal", "antibiotic",
        "vaccine", "antimicrobial", "antiviral", "antifungal", "antiparasitic",
        "pathogen", "virus", "bacteria", "fungus", "parasite", "prion",
        "epidemiology", "epidemic", "pandemic", "endemic", "outbreak",
        "contagious", "transmission", "immunization", "hiv", "aids",
        "hepatitis", "tuberculosis", "malaria", "influenza", "pneumonia",
        "meningitis", "sepsis", "urinary tract infection", "uti",
        "staphylococcus", "mrsa", "streptococcus", "e. coli", "salmonella",
        "clostridium difficile", "c. diff", "candida", "aspergillus",
    ),
    "rare_diseases": (
        "rare", "orphan", "genetic", "congenital", "hereditary", "mutation",
        "syndrome", "lysosomal storage", "enzyme replacement", "genomic",
        "chromosome", "fabre", "gaucher", "niemann-pick", "pompe",
        "mucopolysaccharidosis", "mps", "tay-sachs", "cystic fibrosis",
        "spinal muscular atrophy", "sma", "duchenne muscular dystrophy", "dmd",
        "hemophilia", "sickle cell", "thalassemia", "phenylketonuria", "pku",
        "wilson disease", "fragile x", "huntington", "ataxia", "amyloidosis",
        "acromegaly", "gigantism", "marfan", "ehlers-danlos",
        "primary immunodeficiency", "scid", "gene therapy",
    ),
    "endocrinology": (
        "diabetes", "thyroid", "hormone", "endocrine", "metabolism", "obesity",
        "insulin", "glucose", "pituitary", "adrenal", "hypothalamus",
        "pancreas", "hyperglycemia", "hypoglycemia", "type 1 diabetes",
        "type 2 diabetes", "t1d", "t2d", "diabetic ketoacidosis", "dka",
        "hyperthyroidism", "hypothyroidism", "graves", "hashimoto", "cushing",
        "addison", "acromegaly", "gigantism", "growth hormone", "testosterone",
        "estrogen", "progesterone", "cortisol", "aldosterone", "prolactin",
        "gonadotropin", "polycystic ovary syndrome", "pcos", "osteoporosis",
        "hyperlipidemia", "metabolic syndrome", "insulin resistance",
        "hyperparathyroidism", "hypoparathyroidism",
    ),
}

PHASE_KEYWORDS: Final[dict[str, tuple[str, ...]]] = {
    "PHASE1": (
        "phase 1", "phase i", "first-in-human", "dose escalation", "early phase",
        "first in man", "safety study", "initial dosing", "dose ranging",
        "human pharmacology", "healthy volunteers", "dose-finding",
        "maximum tolerated dose", "mtd", "single ascending dose", "sad",
        "multiple ascending dose", "mad", "pilot study", "pharmacokinetics",
        "pk study", "pharmacodynamics", "phase 1/2", "phase i/ii",
    ),
    "PHASE2": (
        "phase 2", "phase ii", "proof of concept", "efficacy study",
        "dose finding", "exploratory", "safety and efficacy",
        "therapeutic exploratory", "dose response", "expanded cohort",
        "signal finding", "early efficacy", "phase 1b/2", "phase 2a",
        "phase 2b", "phase ii-a", "phase ii-b", "activity evaluation",
        "efficacy signal",
    ),
    "PHASE3": (
        "phase 3", "phase iii", "pivotal", "confirmatory", "registration trial",
        "therapeutic confirmatory", "approval trial", "controlled trial",
        "randomized control", "multi-center study", "label expansion",
        "comparative trial", "non-inferiority", "superiority trial", "phase 3a",
        "phase 3b", "pre-registration", "new drug application", "nda",
        "marketing authorization", "maa", "biologics license application",
        "bla", "late stage clinical",
    ),
    "PHASE4": (
        "phase 4", "phase iv", "post-marketing", "post-approval",
        "real-world evidence", "surveillance study", "registry",
        "pharmacovigilance", "long-term safety", "risk management",
        "comparative effectiveness", "post-authorization safety",
        "observational study", "expanded access", "compassionate use",
        "real-world data", "effectiveness study", "hta study",
        "health economics", "therapeutic use",
    ),
    "EARLY_PHASE": (
        "pre-clinical", "preclinical", "animal study", "in vitro", "laboratory",
        "discovery", "lead optimization", "target identification",
        "target validation", "hit-to-lead", "candidate selection",
        "investigational new drug", "ind", "clinical trial application", "cta",
        "toxicology", "adme", "absorption distribution metabolism excretion",
    ),
}

# Profile phase values that share another key's keyword list
PHASE_ALIASES: Final[dict[str, str]] = {
    "EARLY_PHASE1": "EARLY_PHASE",
}

STATUS_KEYWORDS: Final[dict[str, tuple[str, ...]]] = {
    "RECRUITING": (
        "recruiting", "enrollment", "enrolling", "participant", "subject",
        "actively recruiting", "open for enrollment", "seeking participants",
        "patient recruitment", "current recruitment", "screening participants",
        "accepting patients", "inclusion criteria", "eligibility criteria",
        "exclusion criteria", "participate in trial", "join study",
    ),
    "ACTIVE_NOT_RECRUITING": (
        "active", "ongoing", "in progress", "underway", "active not recruiting",
        "fully enrolled", "enrollment complete", "closed to enrollment",
        "follow-up ongoing", "treatment ongoing", "data collection ongoing",
        "participant follow-up", "follow-up phase",
    ),
    "COMPLETED": (
        "completed", "finished", "concluded", "results", "study completion",
        "trial completion", "data analysis", "final analysis", "publication",
        "published results", "clinical study report", "csr", "trial outcome",
        "primary endpoint", "secondary endpoint", "study findings",
    ),
    "NOT_YET_RECRUITING": (
        "not yet recruiting", "pending", "planned", "upcoming", "opening soon",
        "preparation phase", "site selection", "site initiation",
        "protocol development", "approved by ethical committee", "irb approved",
        "regulatory approval", "planned enrollment", "anticipated start date",
    ),
    "SUSPENDED": (
        "suspended", "hold", "paused", "interrupted", "temporarily halted",
        "safety review", "temporary suspension", "safety concern",
        "protocol violation", "administrative hold", "regulatory hold",
        "clinical hold",
    ),
    "TERMINATED": (
        "terminated", "discontinued", "stopped", "halted", "early termination",
        "premature termination", "futility analysis", "inadequate enrollment",
        "safety concern", "lack of efficacy", "business decision",
        "funding issue", "strategic change", "development discontinued",
    ),
    "WITHDRAWN": (
        "withdrawn", "canceled", "cancelled", "withdrawn before enrollment",
        "withdrawn prior to enrollment", "study withdrawn", "trial withdrawal",
        "protocol withdrawal", "investigator decision", "sponsor decision",
    ),
    "ENROLLING_BY_INVITATION": (
        "enrolling by invitation", "selected participants", "invitation only",
        "selected sites", "selected investigators", "private enrollment",
        "restricted enrollment", "selective recruitment", "targeted enrollment",
    ),
}

DRUG_CLASS_KEYWORDS: Final[dict[str, tuple[str, ...]]] = {
    "oncology": (
        "tyrosine kinase inhibitor", "kinase inhibitor",
        "immune checkpoint inhibitor", "monoclonal antibody", "pd-1", "pd-l1",
        "cart-t", "car-t", "antibody-drug conjugate", "proteasome inhibitor",
        "braf inhibitor", "egfr inhibitor", "anti-angiogenic",
    ),
    "cardiology": (
        "ace inhibitor", "arb", "beta blocker", "calcium channel blocker",
        "diuretic", "anticoagulant", "antiplatelet", "statin", "pcsk9 inhibitor",
        "vasodilator", "antiarrhythmic", "sglt2 inhibitor", "nitroglycerin",
    ),
    "neurology": (
        "antiepileptic", "anti-parkinsonian", "dopamine agonist",
        "nmda antagonist", "cholinesterase inhibitor", "gaba agonist",
        "cgrp antagonist", "glutamate modulator", "serotonin agonist",
        "glutamate antagonist",
    ),
    "immunology": (
        "tnf inhibitor", "il inhibitor", "interleukin inhibitor",
        "jak inhibitor", "monoclonal antibody", "il-17 inhibitor",
        "il-23 inhibitor", "glucocorticoid", "steroid", "dmard", "biologic",
        "immunomodulator",
    ),
    "endocrinology": (
        "insulin", "glp-1 agonist", "sglt2 inhibitor", "dpp-4 inhibitor",
        "sulfonylurea", "thiazolidinedione", "tsh", "growth hormone",
        "gnrh agonist", "somatostatin analogue", "incretin mimetic",
    ),
    "infectious_disease": (
        "antibiotic", "antiviral", "antifungal", "antiparasitic",
        "antiretroviral", "vaccine", "protease inhibitor",
        "polymerase inhibitor", "macrolide", "fluoroquinolone",
        "cephalosporin", "penicillin",
    ),
}

# Sources that earn the affinity bonus for a preference value
SOURCE_PREFERENCES: Final[dict[str, tuple[NewsSource, ...]]] = {
    "oncology": (NewsSource.FDA, NewsSource.PUBMED, NewsSource.DRUGS_COM),
    "cardiology": (NewsSource.FDA, NewsSource.PUBMED, NewsSource.DRUGS_COM),
    "neurology": (NewsSource.FDA, NewsSource.PUBMED, NewsSource.MEDICAL_DEVICE),
    "rare_diseases": (NewsSource.FDA, NewsSource.PUBMED, NewsSource.INTERNATIONAL),
    "PHASE1": (NewsSource.PUBMED, NewsSource.TRIAL_SITE, NewsSource.INTERNATIONAL),
    "PHASE2": (NewsSource.PUBMED, NewsSource.TRIAL_SITE, NewsSource.DRUGS_COM),
    "PHASE3": (NewsSource.FDA, NewsSource.DRUGS_COM, NewsSource.TRIAL_SITE),
    "PHASE4": (NewsSource.FDA, NewsSource.DRUGS_COM, NewsSource.INTERNATIONAL),
    "RECRUITING": (NewsSource.TRIAL_SITE, NewsSource.INTERNATIONAL, NewsSource.PUBMED),
}

# Profile phases that make drug approvals worth a bonus
LATE_STAGE_PHASES: Final[frozenset[str]] = frozenset({"PHASE3", "PHASE4"})

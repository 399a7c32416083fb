"""Static reference tables for the Israeli standard certificate format.

Endorsement and service codes follow the Capital Market Authority
("רשות שוק ההון") certificate circular. All tables are read-only.
"""

from __future__ import annotations

from typing import Optional

# ---------------------------------------------------------------------------
# Endorsement codes (הרחבות / כיסויים נוספים)
# ---------------------------------------------------------------------------

ENDORSEMENT_CODES: dict[str, dict[str, str]] = {
    "301": {"he": "אובדן מסמכים", "en": "Loss of documents", "category": "professional"},
    "302": {"he": "אחריות צולבת", "en": "Cross liability", "category": "liability"},
    "303": {"he": "דיבה, השמצה והוצאת לשון הרע", "en": "Defamation and libel", "category": "professional"},
    "304": {"he": "הרחב שיפוי", "en": "Extended indemnification", "category": "general"},
    "305": {"he": "הרחבת כלי ירייה המוחזק כדין", "en": "Firearms extension", "category": "liability"},
    "306": {"he": "הרחבת צד ג' - נזק בעת שהות זמנית בחו\"ל", "en": "Third party abroad extension", "category": "liability"},
    "307": {"he": "הרחבת צד ג' - קבלנים וקבלני משנה", "en": "Contractors and subcontractors extension", "category": "liability"},
    "308": {"he": "ויתור על תחלוף לטובת גורם אחר", "en": "Waiver of subrogation for other party", "category": "general"},
    "309": {"he": "ויתור על תחלוף לטובת מבקש האישור", "en": "Waiver of subrogation for certificate requester", "category": "general"},
    "310": {"he": "כיסוי למשווקים במסגרת חבות מוצר", "en": "Marketers coverage in product liability", "category": "product"},
    "311": {"he": "כיסוי אובדן תוצאתי בגין נזק לרכוש", "en": "Consequential loss coverage", "category": "property"},
    "312": {"he": "כיסוי בגין נזק גוף משימוש בצמ\"ה", "en": "Bodily injury from heavy equipment", "category": "liability"},
    "313": {"he": "כיסוי בגין נזקי טבע", "en": "Natural disaster coverage", "category": "property"},
    "314": {"he": "כיסוי גניבה פריצה ושוד", "en": "Theft, burglary and robbery", "category": "property"},
    "315": {"he": "כיסוי לתביעות המל\"ל", "en": "National Insurance claims coverage", "category": "employer"},
    "316": {"he": "כיסוי רעידת אדמה", "en": "Earthquake coverage", "category": "property"},
    "317": {"he": "מבוטח נוסף - אחר", "en": "Additional insured - other", "category": "general"},
    "318": {"he": "מבוטח נוסף - מבקש האישור", "en": "Additional insured - certificate requester", "category": "general"},
    "319": {"he": "מבוטח נוסף - כמעבידם של עובדי המבוטח", "en": "Additional insured - as employer", "category": "employer"},
    "320": {"he": "מבוטח נוסף בגין מעשי המבוטח - אחר", "en": "Additional insured for insured acts - other", "category": "general"},
    "321": {"he": "מבוטח נוסף בגין מעשי המבוטח - מבקש האישור", "en": "Additional insured for insured acts - requester", "category": "general"},
    "322": {"he": "מבקש האישור מוגדר כצד ג'", "en": "Requester defined as third party", "category": "liability"},
    "323": {"he": "מוטב לתגמולי ביטוח - אחר", "en": "Insurance beneficiary - other", "category": "general"},
    "324": {"he": "מוטב לתגמולי ביטוח - מבקש האישור", "en": "Insurance beneficiary - requester", "category": "general"},
    "325": {"he": "מרמה ואי יושר עובדים", "en": "Employee fraud and dishonesty", "category": "professional"},
    "326": {"he": "פגיעה בפרטיות במסגרת אחריות מקצועית", "en": "Privacy breach in professional liability", "category": "professional"},
    "327": {"he": "עיכוב/שיהוי עקב מקרה ביטוח", "en": "Delay due to insurance event", "category": "professional"},
    "328": {"he": "ראשוניות - המבטח מוותר על דרישה ממבטח מבקש האישור", "en": "Primary - insurer waives claims against requester insurer", "category": "general"},
    "329": {"he": "רכוש מבקש האישור ייחשב כצד ג'", "en": "Requester property considered third party", "category": "liability"},
    "330": {"he": "שעבוד לטובת גורם אחר", "en": "Lien for other party", "category": "general"},
    "331": {"he": "שעבוד לטובת מבקש האישור", "en": "Lien for certificate requester", "category": "general"},
    "332": {"he": "תקופת גילוי", "en": "Discovery period", "category": "professional"},
    "333": {"he": "גבול האחריות לטובת ההתקשרות בלבד", "en": "Limit for contract only", "category": "general"},
    "334": {"he": "תקופת תחזוקה", "en": "Maintenance period", "category": "contractor"},
    "335": {"he": "תקופת שיפוי", "en": "Indemnification period", "category": "general"},
    "336": {"he": "ביטול חריג אחריות מקצועית בצד ג'", "en": "Cancel professional liability exclusion in TPL", "category": "liability"},
    "337": {"he": "ביטול חריג חבות מוצר בצד ג'", "en": "Cancel product liability exclusion in TPL", "category": "liability"},
    "338": {"he": "הרחבת כיסוי על בסיס ערך כינון", "en": "Replacement value coverage", "category": "property"},
    "339": {"he": "הרחבה לסיכון סייבר", "en": "Cyber risk extension", "category": "professional"},
    "340": {"he": "הרחבת רעידות והחלשת משען", "en": "Vibration and weakening of support", "category": "contractor"},
    "341": {"he": "הרחבת נזק עקיף למתקנים תת קרקעיים", "en": "Indirect damage to underground facilities", "category": "contractor"},
    "342": {"he": "הרחבת מעבידים - כלי ירייה", "en": "Employer extension - firearms", "category": "employer"},
    "343": {"he": "הרחבת הכיסוי לנזקים בעת פריקה וטעינה", "en": "Loading/unloading coverage", "category": "liability"},
    "344": {"he": "הרחבת הכיסוי לעבודות בגובה", "en": "Working at heights coverage", "category": "contractor"},
    "345": {"he": "הרחבה לנזק בגין פרעות ושביתות", "en": "Riots and strikes coverage", "category": "property"},
    "346": {"he": "הרחבה לנזקי חשמל", "en": "Electrical damage coverage", "category": "property"},
    "347": {"he": "הרחבת שם המבוטח בביטוח חבות מוצר", "en": "Insured name extension in product liability", "category": "product"},
    "348": {"he": "ביטול סייג רכוש עליו פעלו במישרין", "en": "Cancel direct work on property exclusion", "category": "liability"},
    "349": {"he": "ביטול סייג רכוש בשליטה בחזקה ופיקוח", "en": "Cancel property in care custody control exclusion", "category": "liability"},
    "350": {"he": "הרחבת חבות כלפי קבלנים בחבות מעבידים", "en": "Contractor liability in employer coverage", "category": "employer"},
}

# Codes that set the certificate-level additional-insured flags.
ADDITIONAL_INSURED_CODES: frozenset[str] = frozenset({"318", "321"})
WAIVER_OF_SUBROGATION_CODES: frozenset[str] = frozenset({"309", "328"})

# ---------------------------------------------------------------------------
# Service codes (קוד השירות), partial list of the common ones
# ---------------------------------------------------------------------------

SERVICE_CODES: dict[str, dict[str, str]] = {
    "001": {"he": "אבטחה", "en": "Security"},
    "007": {"he": "ביקורת חשבונאית, ראיית חשבון ומיסוי", "en": "Accounting and tax"},
    "009": {"he": "בניה - עבודות קבלניות גדולות", "en": "Construction - major works"},
    "017": {"he": "גינון, גיזום וצמחיה", "en": "Gardening and landscaping"},
    "022": {"he": "הובלות והפצה", "en": "Transportation and distribution"},
    "038": {"he": "יועצים/מתכננים", "en": "Consultants/Planners"},
    "039": {"he": "כוח אדם", "en": "Human resources"},
    "040": {"he": "מהנדס, אדריכל, הנדסאי", "en": "Engineer, Architect, Technician"},
    "041": {"he": "מזון/שירותי הסעדה/בתי אוכל", "en": "Food services/Catering"},
    "043": {"he": "מחשוב", "en": "Computing/IT"},
    "057": {"he": "ניקיון", "en": "Cleaning"},
    "074": {"he": "שיפוצים", "en": "Renovations"},
    "085": {"he": "שירותי פיקוח, תכנון ובקרה (בניה)", "en": "Construction supervision"},
    "086": {"he": "שירותי פיקוח, תכנון ובקרה (כללי)", "en": "General supervision"},
    "088": {"he": "שירותי תחזוקה ותפעול", "en": "Maintenance and operations"},
    "093": {"he": "שירותים משפטיים", "en": "Legal services"},
    "103": {"he": "שירותי חומרה ו/או תוכנה", "en": "Hardware/Software services"},
    "105": {"he": "קבלן עבודות תמ\"א/שימור/תחזוקה/בנייה", "en": "TAMA/Conservation/Maintenance contractor"},
}

# ---------------------------------------------------------------------------
# Insurers: canonical Hebrew name -> spellings seen on certificates
# ---------------------------------------------------------------------------

INSURERS: dict[str, tuple[str, ...]] = {
    "הפניקס": ("הפניקס", "Phoenix"),
    "הראל": ("הראל", "Harel"),
    "מגדל": ("מגדל", "Migdal"),
    "כלל": ("כלל ביטוח", "כלל חברה לביטוח", "Clal"),
    "הכשרה": ("הכשרה", "Hachshara"),
    "מנורה מבטחים": ("מנורה מבטחים", "מנורה", "Menora"),
    "איילון": ("איילון", "Ayalon"),
    "שלמה ביטוח": ("שלמה ביטוח", "Shlomo"),
    "ביטוח ישיר": ("ביטוח ישיר", "IDI"),
    "AIG": ("AIG",),
    "שומרה": ("שומרה", "Shomera"),
    "הירדן": ("הירדן",),
}


def describe_endorsement(code: str) -> Optional[dict[str, str]]:
    """Return the bilingual description of an endorsement code, if known."""
    return ENDORSEMENT_CODES.get(code.strip())

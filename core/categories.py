"""Ordered name -> category lookup tables used to group treemap and bubble layouts.

Rules are checked top to bottom and the first rule with a pattern contained in the
name wins. All-caps patterns are acronyms and match case-sensitively, the rest
match case-insensitively. Names matching no rule fall into ``FALLBACK_CATEGORY``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


FALLBACK_CATEGORY = "Other"


@dataclass(frozen=True)
class CategoryRule:
    patterns: Tuple[str, ...]
    category: str

    def matches(self, name: str) -> bool:
        lowered = name.lower()
        for p in self.patterns:
            # acronyms (NSCLC, ALL, MM) only match as written
            if p.isupper():
                if p in name:
                    return True
            elif p.lower() in lowered:
                return True
        return False


INDICATION_CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule(("NSCLC", "SCLC", "Lung", "Mesothelioma"), "Lung Cancer"),
    CategoryRule(("TNBC", "HER2", "HR+", "Breast"), "Breast Cancer"),
    CategoryRule(("AML", "CLL", "ALL", "MM", "DLBCL", "Lymphoma", "Myeloma", "Leukemia", "MDS"), "Hematologic Malignancies"),
    CategoryRule(("CRC", "Colorectal", "Gastric", "Pancrea", "PDAC", "HCC", "Liver", "Esophageal", "Biliary"), "Gastrointestinal Cancers"),
    CategoryRule(("Prostate", "mCRPC", "RCC", "Renal", "Bladder", "Urothelial"), "Genitourinary Cancers"),
    CategoryRule(("Ovarian", "Cervical", "Endometrial"), "Gynecologic Cancers"),
    CategoryRule(("GBM", "Glioma", "Glioblastoma"), "CNS Tumors"),
    CategoryRule(("Melanoma", "HNSCC", "Head and Neck"), "Skin & Head/Neck Cancers"),
    CategoryRule(("Solid Tumor", "Pan-tumor"), "Solid Tumors (Multiple)"),
)

MODALITY_CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule(("ADC", "Radioligand", "RLT"), "Targeted Conjugates"),
    CategoryRule(("Bispecific", "mAb", "Antibody"), "Antibodies"),
    CategoryRule(("Cell Therapy", "CAR-T", "CAR-NK", "TCR", "TIL"), "Cell Therapies"),
    CategoryRule(("mRNA", "siRNA", "ASO", "Gene Therapy", "Vaccine"), "Genetic Medicines"),
    CategoryRule(("Small Molecule", "Degrader", "PROTAC"), "Small Molecules"),
)


def categorize(name: str, rules: Sequence[CategoryRule], fallback: Optional[str] = FALLBACK_CATEGORY) -> Optional[str]:
    for rule in rules:
        if rule.matches(name):
            return rule.category
    return fallback


def indication_category(name: str) -> str:
    return categorize(name, INDICATION_CATEGORY_RULES) or FALLBACK_CATEGORY


def modality_category(name: str) -> str:
    return categorize(name, MODALITY_CATEGORY_RULES) or FALLBACK_CATEGORY

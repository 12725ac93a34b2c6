import pytest

from core.categories import (
    FALLBACK_CATEGORY,
    INDICATION_CATEGORY_RULES,
    CategoryRule,
    categorize,
    indication_category,
    modality_category,
)


@pytest.mark.parametrize(
    'name, expected',
    [
        ('NSCLC', 'Lung Cancer'),
        ('SCLC', 'Lung Cancer'),
        ('TNBC', 'Breast Cancer'),
        ('HER2+ BC', 'Breast Cancer'),
        ('AML', 'Hematologic Malignancies'),
        ('MM', 'Hematologic Malignancies'),
        ('CRC', 'Gastrointestinal Cancers'),
        ('mCRPC', 'Genitourinary Cancers'),
        ('GBM', 'CNS Tumors'),
        ('Melanoma', 'Skin & Head/Neck Cancers'),
    ],
)
def test_indication_categories(name, expected) -> None:
    assert indication_category(name) == expected


@pytest.mark.parametrize(
    'name, expected',
    [
        ('ADC', 'Targeted Conjugates'),
        ('Radioligand', 'Targeted Conjugates'),
        ('mAb', 'Antibodies'),
        ('Bispecific', 'Antibodies'),
        ('Cell Therapy', 'Cell Therapies'),
        ('siRNA', 'Genetic Medicines'),
        ('Small Molecule', 'Small Molecules'),
    ],
)
def test_modality_categories(name, expected) -> None:
    assert modality_category(name) == expected


def test_acronyms_match_case_sensitively() -> None:
    # "Overall" contains "all" but not the ALL acronym
    assert indication_category('Overall') == FALLBACK_CATEGORY
    assert indication_category('lung adenocarcinoma') == 'Lung Cancer'


def test_unknown_names_fall_back() -> None:
    assert modality_category('Peptide') == FALLBACK_CATEGORY
    assert categorize('Peptide', INDICATION_CATEGORY_RULES, fallback=None) is None


def test_first_matching_rule_wins() -> None:
    rules = (CategoryRule(('ADC',), 'first'), CategoryRule(('ADC',), 'second'))

    assert categorize('Bispecific ADC', rules) == 'first'

import pytest

from conftest import make_config
from social_security.schemas.social_security import CATEGORIES
from social_security.services import defaults
from social_security.services.errors import InvalidConfig
from social_security.services.validator import validate_city_config, validate_storable


def _rule(**kw):
    rule = {"personal_rate": "0.01", "company_rate": "0.01", "base_lower": "1000", "base_upper": "2000"}
    rule.update(kw)
    return rule


def test_valid_config_passes(beijing):
    assert validate_city_config(beijing) is beijing


@pytest.mark.parametrize("category", CATEGORIES)
def test_each_category_checks_base_order(category):
    cfg = make_config(**{category: _rule(base_lower="2000", base_upper="2000")})
    with pytest.raises(InvalidConfig) as ei:
        validate_city_config(cfg)
    assert ei.value.category == category
    assert "下限必须小于上限" in ei.value.message


@pytest.mark.parametrize("category", CATEGORIES)
@pytest.mark.parametrize("field,value", [
    ("personal_rate", "-0.01"),
    ("personal_rate", "1.01"),
    ("company_rate", "-1"),
    ("company_rate", "2"),
])
def test_each_category_checks_rate_range(category, field, value):
    cfg = make_config(**{category: _rule(**{field: value})})
    with pytest.raises(InvalidConfig) as ei:
        validate_city_config(cfg)
    assert ei.value.category == category
    assert "0-100%" in ei.value.message


def test_rate_bounds_are_inclusive():
    cfg = make_config(injury=_rule(personal_rate="0", company_rate="1"))
    validate_city_config(cfg)


def test_negative_floor_rejected():
    cfg = make_config(maternity=_rule(base_lower="-1"))
    with pytest.raises(InvalidConfig) as ei:
        validate_city_config(cfg)
    assert ei.value.category == "maternity"


def test_negative_medical_fixed_rejected():
    cfg = make_config(medical=_rule(personal_fixed="-5"))
    with pytest.raises(InvalidConfig) as ei:
        validate_city_config(cfg)
    assert ei.value.category == "medical"


def test_first_violation_in_category_order_wins():
    cfg = make_config(
        housing_fund=_rule(base_lower="5", base_upper="1"),
        unemployment=_rule(company_rate="3"),
    )
    with pytest.raises(InvalidConfig) as ei:
        validate_city_config(cfg)
    assert ei.value.category == "unemployment"


def test_base_upper_beyond_amount_limit_rejected():
    cfg = make_config(pension=_rule(base_upper="1e20"))
    with pytest.raises(InvalidConfig) as ei:
        validate_city_config(cfg)
    assert ei.value.category == "pension"
    assert "超出范围" in ei.value.message


@pytest.mark.parametrize("category,rule,fragment", [
    ("injury", _rule(company_rate="0.0025125"), "6位小数"),
    ("pension", _rule(base_lower="5360.005"), "2位小数"),
    ("housing_fund", _rule(base_upper="31884.001"), "2位小数"),
])
def test_storable_rejects_values_finer_than_the_columns(category, rule, fragment):
    cfg = make_config(**{category: rule})
    validate_city_config(cfg)
    with pytest.raises(InvalidConfig) as ei:
        validate_storable(cfg)
    assert ei.value.category == category
    assert fragment in ei.value.message


def test_storable_checks_medical_fixed_scale():
    cfg = make_config(medical=_rule(company_fixed="3.255"))
    with pytest.raises(InvalidConfig) as ei:
        validate_storable(cfg)
    assert ei.value.category == "medical"


def test_storable_accepts_static_table():
    for city in defaults.list_static_cities():
        validate_storable(defaults.get_static_config(city))

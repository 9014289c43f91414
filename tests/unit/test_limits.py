import pytest
from pydantic import BaseModel, ValidationError

from planquota.billing.limits import (
    UNLIMITED,
    Bounded,
    LimitField,
    Unlimited,
    is_exceeded,
    limit_from_wire,
    limit_to_wire,
    remaining,
)


class _Holder(BaseModel):
    limit: LimitField


@pytest.mark.unit
class TestLimitWireFormat:
    def test_minus_one_is_unlimited(self) -> None:
        assert limit_from_wire(-1) is UNLIMITED
        assert limit_to_wire(UNLIMITED) == -1

    def test_non_negative_is_bounded(self) -> None:
        assert limit_from_wire(0) == Bounded(0)
        assert limit_from_wire(15) == Bounded(15)
        assert limit_to_wire(Bounded(15)) == 15

    def test_other_negatives_rejected(self) -> None:
        with pytest.raises(ValueError, match="Limit must be"):
            limit_from_wire(-2)

    def test_bool_and_float_rejected(self) -> None:
        with pytest.raises(ValueError):
            limit_from_wire(True)
        with pytest.raises(ValueError):
            limit_from_wire(1.5)

    def test_bounded_rejects_negative(self) -> None:
        with pytest.raises(ValueError):
            Bounded(-1)

    def test_pydantic_field_reads_and_writes_sentinel(self) -> None:
        holder = _Holder.model_validate({"limit": -1})
        assert isinstance(holder.limit, Unlimited)
        assert holder.model_dump(mode="json") == {"limit": -1}
        assert _Holder(limit=Bounded(3)).model_dump(mode="json") == {"limit": 3}

    def test_pydantic_field_rejects_bad_value(self) -> None:
        with pytest.raises(ValidationError):
            _Holder.model_validate({"limit": -5})


@pytest.mark.unit
class TestLimitChecks:
    def test_unlimited_never_exceeded(self) -> None:
        assert is_exceeded(0, UNLIMITED) is False
        assert is_exceeded(10**9, UNLIMITED) is False
        assert remaining(10**9, UNLIMITED) is None

    def test_exceeded_at_limit(self) -> None:
        assert is_exceeded(14, Bounded(15)) is False
        assert is_exceeded(15, Bounded(15)) is True
        assert is_exceeded(16, Bounded(15)) is True

    def test_zero_limit_is_always_exceeded(self) -> None:
        assert is_exceeded(0, Bounded(0)) is True

    def test_remaining_floors_at_zero(self) -> None:
        assert remaining(5, Bounded(20)) == 15
        assert remaining(25, Bounded(20)) == 0

"""난수 오라클 테스트"""

import pytest

from src.core.errors import ConfigurationError, OracleFailure
from src.services.oracle import (
    MockRandomnessOracle,
    SystemRandomnessOracle,
    get_randomness_oracle,
)


class TestMockOracle:
    def test_same_seed_same_stream(self):
        a = MockRandomnessOracle(seed="s")
        b = MockRandomnessOracle(seed="s")
        assert a.request_random_words(3) == b.request_random_words(3)

    def test_stream_advances(self):
        oracle = MockRandomnessOracle(seed="s")
        first = oracle.request_random_words(1)
        second = oracle.request_random_words(1)
        assert first != second
        assert oracle.request_count == 2

    def test_words_are_256_bit(self):
        words = MockRandomnessOracle().request_random_words(4)
        assert all(0 <= w < 2**256 for w in words)

    def test_fixed_words_cycle(self):
        oracle = MockRandomnessOracle(fixed_words=[1, 2])
        assert oracle.request_random_words(3) == [1, 2, 1]

    @pytest.mark.parametrize("count", [0, 11])
    def test_count_out_of_range(self, count):
        with pytest.raises(OracleFailure) as exc_info:
            MockRandomnessOracle().request_random_words(count)
        assert exc_info.value.is_retryable is True


class TestSystemOracle:
    def test_words(self):
        words = SystemRandomnessOracle().request_random_words(2)
        assert len(words) == 2
        assert all(0 <= w < 2**256 for w in words)

    def test_count_out_of_range(self):
        with pytest.raises(OracleFailure):
            SystemRandomnessOracle(max_words=1).request_random_words(2)


class TestFactory:
    def test_named_providers(self):
        assert get_randomness_oracle("mock").name == "mock"
        assert get_randomness_oracle("system").name == "system"

    def test_unknown_provider_raises(self):
        """오타난 제공자 이름을 예측 가능한 mock으로 바꾸지 않는다"""
        with pytest.raises(ConfigurationError) as exc_info:
            get_randomness_oracle("vrf-typo")
        assert exc_info.value.details["provider"] == "vrf-typo"
        assert exc_info.value.is_retryable is False

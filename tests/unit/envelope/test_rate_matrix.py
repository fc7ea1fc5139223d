import numpy as np
import pytest

from rtt.core.errors import DomainMismatch, InvalidArgument
from rtt.core.models import RateKind, SourceType
from rtt.envelope.matrix import (
    RateMatrixProvider,
    RateThroughTimeMatrix,
    rate_label,
    resolve_rate_kind,
    select_rates,
)
from tests._factories import FakeProvider, mk_diversification, mk_trait

# ---------------------------------------------------------------------
# Container invariants
# ---------------------------------------------------------------------


def test_diversification_container_is_read_only():
    rmat = mk_diversification(n_samples=10, n_bins=6)
    assert rmat.source_type is SourceType.DIVERSIFICATION
    assert rmat.shape == (10, 6)
    assert rmat.n_samples == 10 and rmat.n_bins == 6
    with pytest.raises(ValueError):
        rmat.lambda_[0, 0] = 1.0
    with pytest.raises(ValueError):
        rmat.times[0] = 5.0


def test_source_type_accepts_plain_string():
    rmat = RateThroughTimeMatrix("trait", [0.0, 1.0], beta=[[0.1, 0.2]])
    assert rmat.source_type is SourceType.TRAIT


def test_one_dimensional_rates_read_as_single_sample():
    rmat = RateThroughTimeMatrix.trait([0.1, 0.2, 0.3], [0.0, 1.0, 2.0])
    assert rmat.shape == (1, 3)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"lambda_": [[1.0, 2.0]], "mu": None, "times": [0.0, 1.0, 2.0]},
        {"lambda_": [[1.0, 2.0]], "mu": None, "times": [1.0, 0.0]},
        {"lambda_": [[1.0, float("nan")]], "mu": None, "times": [0.0, 1.0]},
        {"lambda_": np.empty((0, 2)), "mu": None, "times": [0.0, 1.0]},
        {"lambda_": [[1.0, 2.0]], "mu": [[1.0, 2.0], [3.0, 4.0]], "times": [0.0, 1.0]},
        {"lambda_": [[1.0, 2.0]], "mu": None, "times": [0.0, float("inf")]},
        {"lambda_": [[float("inf"), 1.0], [float("inf"), 2.0]], "mu": None, "times": [0.0, 1.0]},
        {"lambda_": [[1.0, 2.0]], "mu": [[float("-inf"), 0.5]], "times": [0.0, 1.0]},
    ],
)
def test_malformed_diversification_matrix_raises(kwargs):
    with pytest.raises(InvalidArgument):
        RateThroughTimeMatrix.diversification(**kwargs)


def test_slot_combinations_checked():
    with pytest.raises(InvalidArgument):
        RateThroughTimeMatrix(SourceType.TRAIT, [0.0], lambda_=[[1.0]], beta=[[1.0]])
    with pytest.raises(InvalidArgument):
        RateThroughTimeMatrix(SourceType.DIVERSIFICATION, [0.0], beta=[[1.0]])
    with pytest.raises(InvalidArgument):
        RateThroughTimeMatrix("morphology", [0.0], beta=[[1.0]])


def test_provider_protocol_is_structural():
    assert isinstance(FakeProvider(rmat=mk_trait(), source_type=SourceType.TRAIT), RateMatrixProvider)
    assert not isinstance(mk_trait(), RateMatrixProvider)


# ---------------------------------------------------------------------
# Rate-slot dispatch
# ---------------------------------------------------------------------


def test_auto_selects_speciation_for_diversification():
    rmat = mk_diversification(n_samples=5, n_bins=4)
    rate, kind = select_rates(rmat)
    assert kind is RateKind.SPECIATION
    assert rate is rmat.lambda_


def test_extinction_and_netdiv():
    rmat = mk_diversification(n_samples=5, n_bins=4)
    mu, kind = select_rates(rmat, "extinction")
    assert kind is RateKind.EXTINCTION and mu is rmat.mu
    nd, kind = select_rates(rmat, RateKind.NETDIV)
    assert kind is RateKind.NETDIV
    np.testing.assert_allclose(nd, rmat.lambda_ - rmat.mu)


def test_auto_selects_beta_for_trait():
    rmat = mk_trait(n_samples=5, n_bins=4)
    rate, kind = select_rates(rmat, "auto")
    assert kind is RateKind.TRAIT
    assert rate is rmat.beta


@pytest.mark.parametrize("kind", ["speciation", "extinction", "netdiv"])
def test_trait_source_rejects_diversification_rates(kind):
    with pytest.raises(DomainMismatch):
        select_rates(mk_trait(n_samples=3, n_bins=3), kind)


def test_diversification_source_rejects_trait_rate():
    with pytest.raises(DomainMismatch):
        select_rates(mk_diversification(n_samples=3, n_bins=3), "trait")


@pytest.mark.parametrize("kind", ["extinction", "netdiv"])
def test_missing_extinction_matrix_is_a_domain_mismatch(kind):
    rmat = mk_diversification(n_samples=3, n_bins=3, with_mu=False)
    with pytest.raises(DomainMismatch):
        select_rates(rmat, kind)


def test_unknown_rate_kind_is_invalid():
    with pytest.raises(InvalidArgument):
        resolve_rate_kind("beta", SourceType.TRAIT)


def test_rate_labels():
    assert rate_label(RateKind.SPECIATION) == "Speciation"
    assert rate_label("netdiv") == "Net diversification"
    assert rate_label("trait") == "Trait rate"
    with pytest.raises(InvalidArgument):
        rate_label("auto")

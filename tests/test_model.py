"""
Test Suite for Bayesian Model Averaging Module
===============================================

Tests for model scoring, enumeration, MCMC search and the BMA result.
"""

import pytest
import numpy as np
import pandas as pd
import statsmodels.api as sm

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import make_linear_data
from movie_bma.model import (
    BayesianModelAverager, SearchAccumulator, ols_fit, marginal_association,
    average_models, NULL_MODEL_LABEL
)
from movie_bma.priors import UniformModelPrior, BetaBinomialModelPrior
from movie_bma.exceptions import ConfigurationError, DataSufficiencyError, SchemaError


class TestOlsFit:
    """Tests for ols_fit."""

    def test_matches_statsmodels(self, linear_data):
        """Test coefficients and BIC agree with statsmodels OLS."""
        X, y = linear_data
        fit = ols_fit(X.to_numpy(), y.to_numpy(), (0, 1))
        reference = sm.OLS(y, sm.add_constant(X[['x1', 'x2']])).fit()

        np.testing.assert_array_almost_equal(fit.coefficients, reference.params.to_numpy())
        assert fit.rss == pytest.approx(reference.ssr)
        # statsmodels' BIC carries the Gaussian constant n*(log(2*pi) + 1)
        n = len(y)
        assert fit.bic == pytest.approx(reference.bic - n * (np.log(2 * np.pi) + 1))

    def test_null_model(self, linear_data):
        """Test the intercept-only fit is the response mean."""
        X, y = linear_data
        fit = ols_fit(X.to_numpy(), y.to_numpy(), ())
        assert fit.coefficients[0] == pytest.approx(y.mean())
        assert fit.n_params == 1

    def test_rank_deficient(self, linear_data):
        """Test collinear designs get -inf log marginal."""
        X, y = linear_data
        X = X.assign(x1_copy=X['x1'] * 2)
        fit = ols_fit(X.to_numpy(), y.to_numpy(), (0, 4))
        assert fit.is_degenerate
        assert fit.log_marginal == -np.inf


class TestMarginalAssociation:
    """Tests for marginal_association."""

    def test_ranks_true_predictors_first(self, linear_data):
        """Test the strongest predictor comes first."""
        X, y = linear_data
        ranking = marginal_association(X, y)

        assert ranking.index[0] == 'x1'
        assert set(ranking.index[:2]) == {'x1', 'x2'}
        assert ranking['score'].is_monotonic_decreasing


class TestEnumeration:
    """Tests for exhaustive model enumeration."""

    @pytest.mark.parametrize("n_predictors", [1, 2, 3])
    def test_posterior_sums_to_one(self, linear_data, n_predictors):
        """Test posterior over all 2^p models sums to one."""
        X, y = linear_data
        X = X.iloc[:, :n_predictors]

        result = BayesianModelAverager(method='enumerate').fit(X, y)

        assert result.n_models == 2 ** n_predictors
        assert result.posterior.sum() == pytest.approx(1.0)
        assert result.prior_probabilities.sum() == pytest.approx(1.0)

    def test_null_model_has_prior(self, linear_data):
        """Test the intercept-only model has positive uniform prior."""
        X, y = linear_data
        result = BayesianModelAverager(UniformModelPrior(), method='enumerate').fit(X.iloc[:, :3], y)

        assert result.prior_probabilities[NULL_MODEL_LABEL] == pytest.approx(1 / 8)

    def test_inclusion_is_marginal_sum(self, linear_data):
        """Test inclusion equals posterior summed over containing models."""
        X, y = linear_data
        result = BayesianModelAverager(method='enumerate').fit(X.iloc[:, :3], y)

        for name in ['x1', 'x2', 'x3']:
            expected = sum(prob for label, prob in result.posterior.items()
                           if name in result.model_predictors(label))
            assert result.inclusion_probabilities[name] == pytest.approx(expected)

    def test_true_model_recovered(self, linear_data):
        """Known model y = 3 + 2*x1 - x2 with two irrelevant predictors."""
        X, y = linear_data
        result = BayesianModelAverager(method='enumerate').fit(X, y)

        top_two = result.posterior.index[:2]
        for label in top_two:
            predictors = result.model_predictors(label)
            assert 'x1' in predictors
            assert 'x2' in predictors
        assert result.posterior.iloc[:2].sum() > 0.5
        assert result.inclusion_probabilities['x1'] > 0.99

    def test_auto_enumerates_small_sets(self, linear_data):
        """Test auto mode picks enumeration for few predictors."""
        X, y = linear_data
        assert BayesianModelAverager(method='auto').fit(X, y).method == 'enumerate'

    def test_trunc_limits_model_size(self, linear_data):
        """Test no model exceeds the prior's size cap."""
        X, y = linear_data
        result = BayesianModelAverager(BetaBinomialModelPrior(1, 1, trunc=2), method='enumerate').fit(X, y)

        assert max(len(result.model_predictors(label)) for label in result.posterior.index) == 2
        assert result.n_models == 1 + 4 + 6

    def test_include_always(self, linear_data):
        """Test always-included predictors appear in every model."""
        X, y = linear_data
        result = BayesianModelAverager(method='enumerate', include_always=['x3']).fit(X, y)

        assert result.n_models == 8
        assert result.inclusion_probabilities['x3'] == pytest.approx(1.0)

    def test_coefficient_summary(self, linear_data):
        """Test averaged coefficients are near the generating values."""
        X, y = linear_data
        summary = BayesianModelAverager(method='enumerate').fit(X, y).coefficient_summary()

        assert summary.loc['Intercept', 'p_nonzero'] == 1.0
        assert summary.loc['x1', 'post_mean'] == pytest.approx(2.0, abs=0.2)
        assert summary.loc['x2', 'post_mean'] == pytest.approx(-1.0, abs=0.2)
        assert (summary['post_sd'] >= 0).all()

    def test_top_models_table(self, linear_data):
        """Test the top model table lists models in posterior order."""
        X, y = linear_data
        result = BayesianModelAverager(method='enumerate').fit(X, y)
        table = result.top_models(3)

        assert len(table) == 3
        assert table['posterior_probability'].is_monotonic_decreasing
        assert table.loc[0, 'x1'] == 1

    def test_bma_fitted_values(self, linear_data):
        """Test averaged fitted values are the weighted model fits."""
        X, y = linear_data
        result = BayesianModelAverager(method='enumerate').fit(X.iloc[:, :2], y)

        expected = sum(prob * result.fitted_values(label)
                       for label, prob in result.posterior.items())
        np.testing.assert_array_almost_equal(result.bma_fitted_values(), expected)
        np.testing.assert_array_almost_equal(result.predict_bma(X.iloc[:, :2]), expected)


class TestAveragerErrors:
    """Tests for configuration and data errors."""

    def test_non_positive_iterations(self):
        with pytest.raises(ConfigurationError):
            BayesianModelAverager(n_iterations=0)

    def test_unknown_method(self):
        with pytest.raises(ConfigurationError):
            BayesianModelAverager(method='gibbs')

    def test_trunc_below_include_always(self, linear_data):
        """Test a cap smaller than the mandatory predictors is rejected."""
        X, y = linear_data
        averager = BayesianModelAverager(
            BetaBinomialModelPrior(trunc=1), include_always=['x1', 'x2']
        )
        with pytest.raises(ConfigurationError):
            averager.fit(X, y)

    def test_unknown_include_always(self, linear_data):
        X, y = linear_data
        with pytest.raises(SchemaError):
            BayesianModelAverager(include_always=['budget']).fit(X, y)

    def test_no_rows(self, linear_data):
        X, y = linear_data
        with pytest.raises(DataSufficiencyError):
            BayesianModelAverager().fit(X.iloc[:0], y.iloc[:0])

    def test_too_few_rows(self, linear_data):
        """Test fewer rows than coefficients is rejected."""
        X, y = linear_data
        with pytest.raises(DataSufficiencyError):
            BayesianModelAverager().fit(X.iloc[:4], y.iloc[:4])

    def test_constant_predictor(self, linear_data):
        X, y = linear_data
        with pytest.raises(DataSufficiencyError, match="Constant"):
            BayesianModelAverager().fit(X.assign(const=1.0), y)

    @pytest.mark.parametrize("method", ['enumerate', 'mcmc'])
    def test_collinear_predictor(self, linear_data, method):
        """Test an exact linear combination of predictors is rejected."""
        X, y = linear_data
        X = X.assign(x5=X['x1'] + X['x2'])
        with pytest.raises(DataSufficiencyError, match="Collinear"):
            BayesianModelAverager(method=method, n_iterations=500).fit(X, y)

    def test_enumeration_limit(self, linear_data):
        X, y = linear_data
        with pytest.raises(ConfigurationError):
            BayesianModelAverager(method='enumerate', enumerate_limit=3).fit(X, y)

    def test_average_models_missing_column(self, linear_data):
        X, y = linear_data
        df = X.assign(y=y)
        with pytest.raises(SchemaError):
            average_models(df, 'y', ['x1', 'budget'], {})


class TestSearchAccumulator:
    """Tests for SearchAccumulator."""

    def test_counts_and_halves(self):
        """Test visit counts, inclusion and half estimates."""
        acc = SearchAccumulator(n_predictors=3, n_iterations=4)
        for key in [(0,), (0, 1), (0, 1), (2,)]:
            acc.record(key)

        np.testing.assert_array_almost_equal(acc.inclusion_probabilities(), [0.75, 0.5, 0.25])
        assert acc.posterior() == {(0,): 0.25, (0, 1): 0.5, (2,): 0.25}

        first, second = acc.half_inclusion_probabilities()
        np.testing.assert_array_almost_equal(first, [1.0, 0.5, 0.0])
        np.testing.assert_array_almost_equal(second, [0.5, 0.5, 0.5])


class TestMCMC:
    """Tests for the sampled model search."""

    def test_reproducible_with_seed(self, linear_data):
        """Test the same seed gives the same estimates."""
        X, y = linear_data
        first = BayesianModelAverager(method='mcmc', n_iterations=2000, random_state=7).fit(X, y)
        second = BayesianModelAverager(method='mcmc', n_iterations=2000, random_state=7).fit(X, y)

        pd.testing.assert_series_equal(first.inclusion_probabilities, second.inclusion_probabilities)

    def test_posterior_is_visit_frequency(self, linear_data):
        """Test frequencies sum to one and match the accumulator."""
        X, y = linear_data
        result = BayesianModelAverager(method='mcmc', n_iterations=3000, random_state=1).fit(X, y)

        assert result.posterior.sum() == pytest.approx(1.0)
        assert result.accumulator.n_recorded == 3000
        assert result.ordering[0] == 'x1'

    def test_agrees_with_enumeration(self, linear_data):
        """Test MCMC inclusion approximates the exact enumeration."""
        X, y = linear_data
        exact = BayesianModelAverager(method='enumerate').fit(X, y)
        sampled = BayesianModelAverager(method='mcmc', n_iterations=10000, random_state=3).fit(X, y)

        np.testing.assert_allclose(
            sampled.inclusion_probabilities, exact.inclusion_probabilities, atol=0.1
        )
        np.testing.assert_allclose(
            sampled.renormalized_inclusion(), exact.inclusion_probabilities, atol=0.05
        )

    def test_flips_follow_scan_order(self):
        """Test flip proposals walk the predictors in ranked order."""
        rng = np.random.default_rng(0)
        scan = [2, 0, 1]
        position = 0
        flipped = []

        for _ in range(50):
            proposal, next_position = BayesianModelAverager._propose((), scan, set(), rng, position)
            if next_position != position:
                flipped.append(proposal)
            position = next_position

        assert flipped[:4] == [(2,), (0,), (1,), (2,)]

    def test_respects_trunc(self, linear_data):
        """Test the walk never visits models above the cap."""
        X, y = linear_data
        result = BayesianModelAverager(
            BetaBinomialModelPrior(1, 1, trunc=2), method='mcmc', n_iterations=2000
        ).fit(X, y)

        assert max(len(result.model_predictors(label)) for label in result.posterior.index) <= 2

    def test_more_iterations_reduce_variance(self):
        """Inclusion estimates vary less across seeds with longer runs."""
        rng = np.random.default_rng(11)
        X = pd.DataFrame({'x1': rng.normal(size=40), 'x2': rng.normal(size=40)})
        y = pd.Series(1 + 0.35 * X['x1'] + rng.normal(size=40))

        def spread(n_iterations):
            estimates = np.array([
                BayesianModelAverager(method='mcmc', n_iterations=n_iterations, random_state=seed)
                .fit(X, y).inclusion_probabilities.to_numpy()
                for seed in range(8)
            ])
            return estimates.var(axis=0).sum()

        assert spread(4000) <= spread(50) + 1e-12


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

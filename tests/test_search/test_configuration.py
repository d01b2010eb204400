"""
Tests for Configuration and ParameterSchema.
"""

import numpy as np
import pytest

from stream_cluster_tuner.algorithms import (
    BaseStreamClusterer,
    ClustererFactory,
    ClusteringResult,
    OptionSpec,
)
from stream_cluster_tuner.config import AlgorithmDeclaration, ParameterDeclaration
from stream_cluster_tuner.search import (
    Configuration,
    ParameterKind,
    ParameterSchema,
    ParameterSpec,
    UnknownParameterTypeError,
)


class CountingClusterer(BaseStreamClusterer):
    """Clusterer without in-place updates; reports the running mean."""

    name = "counting"
    OPTIONS = {"alpha": OptionSpec(float, 0.5)}

    def reset_learning(self):
        self.points_seen = 0
        self.total = None

    def train_on_point(self, point):
        x = np.asarray(point, dtype=np.float64)
        self.total = x.copy() if self.total is None else self.total + x
        self.points_seen += 1

    def get_clustering_result(self):
        if self.total is None:
            return None
        return ClusteringResult(centers=self.total / self.points_seen)


@pytest.fixture
def counting_factory():
    factory = ClustererFactory()
    factory.register("counting", CountingClusterer)
    return factory


def _train(configuration, points):
    for point in points:
        configuration.train_on_point(point)


class TestSchema:
    def test_schema_layout(self, make_leader):
        schema = make_leader().schema
        assert schema.algorithm == "leader"
        assert schema.names == ["radius", "distance", "merge"]
        assert schema.attributes[0].values == ()
        assert schema.attributes[1].values == ("euclidean", "manhattan", "chebyshev")

    def test_schema_is_hashable_and_shared(self, make_leader):
        original = make_leader()
        copy = original.duplicate()
        assert copy.schema is original.schema
        assert {original.schema: 1}[copy.schema] == 1

    def test_to_features(self, make_leader):
        configuration = make_leader(radius=0.4, merge=True)
        features = configuration.schema.to_features(configuration.parameter_vector())
        assert features == {"radius": 0.4, "distance": 0.0, "merge": 1.0}

    def test_to_features_length_mismatch(self, make_leader):
        with pytest.raises(ValueError, match="does not match"):
            make_leader().schema.to_features([1.0])

    def test_equal_layouts_compare_equal(self):
        params = [ParameterSpec("k", ParameterKind.INTEGER, 3, (2, 8))]
        assert ParameterSchema.from_parameters("online_kmeans", params) == ParameterSchema.from_parameters(
            "online_kmeans", [p.copy() for p in params]
        )


class TestConstruction:
    def test_duplicate_names_rejected(self, factory):
        params = [
            ParameterSpec("k", ParameterKind.INTEGER, 3, (2, 8)),
            ParameterSpec("k", ParameterKind.INTEGER, 4, (2, 8)),
        ]
        with pytest.raises(ValueError, match="Duplicate"):
            Configuration("online_kmeans", params, factory)

    def test_unmaterialized_by_default(self, factory):
        configuration = Configuration(
            "online_kmeans", [ParameterSpec("k", ParameterKind.INTEGER, 3, (2, 8))], factory
        )
        assert not configuration.is_materialized
        with pytest.raises(RuntimeError, match="not materialized"):
            configuration.train_on_point(np.zeros(2))

    def test_from_declaration_materializes(self, factory):
        declaration = AlgorithmDeclaration(
            "leader",
            [
                ParameterDeclaration("radius", "numeric", 0.3, [0.1, 1.0]),
                ParameterDeclaration("distance", "nominal", "chebyshev", ["euclidean", "chebyshev"]),
            ],
        )
        configuration = Configuration.from_declaration(declaration, factory)
        assert configuration.is_materialized
        assert configuration.clusterer.radius == 0.3
        assert configuration.clusterer.distance == "chebyshev"

    def test_from_declaration_unknown_type(self, factory):
        declaration = AlgorithmDeclaration(
            "leader", [ParameterDeclaration("radius", "real", 0.3, [0.1, 1.0])]
        )
        with pytest.raises(UnknownParameterTypeError):
            Configuration.from_declaration(declaration, factory)

    def test_from_declaration_unknown_algorithm(self, factory):
        declaration = AlgorithmDeclaration(
            "dbscan", [ParameterDeclaration("eps", "numeric", 0.3, [0.1, 1.0])]
        )
        with pytest.raises(ValueError, match="Unknown algorithm"):
            Configuration.from_declaration(declaration, factory)


class TestRendering:
    def test_command_line(self, make_leader):
        assert make_leader(radius=0.25, merge=True).command_line() == (
            "leader -radius 0.25 -distance euclidean -merge"
        )

    def test_false_boolean_is_omitted(self, make_leader):
        assert make_leader(radius=0.25).option_tokens() == ["-radius 0.25", "-distance euclidean"]

    def test_parameter_vector(self, make_kmeans):
        np.testing.assert_array_equal(make_kmeans(k=4, warmup=50).parameter_vector(), [4.0, 2.0])

    def test_clusterer_matches_parameters(self, make_kmeans):
        clusterer = make_kmeans(k=5, warmup=10).clusterer
        assert clusterer.k == 5
        assert clusterer.warmup == 10


class TestDuplicate:
    def test_preserved_model_trains_identically(self, make_leader, blobs):
        original = make_leader()
        _train(original, blobs[:60])
        copy = original.duplicate(preserve_model=True)
        assert copy.clusterer is not original.clusterer

        _train(original, blobs[60:])
        _train(copy, blobs[60:])
        a = original.clusterer.get_clustering_result()
        b = copy.clusterer.get_clustering_result()
        np.testing.assert_allclose(a.centers, b.centers)
        np.testing.assert_allclose(a.weights, b.weights)

    def test_unpreserved_copy_is_unmaterialized(self, make_leader):
        copy = make_leader().duplicate()
        assert not copy.is_materialized
        copy.materialize()
        assert copy.clusterer.points_seen == 0

    def test_parameters_are_independent(self, make_leader, rng):
        original = make_leader()
        copy = original.duplicate(preserve_model=True)
        for _ in range(5):
            copy.sample_new_config(0.5, rng)
        assert original.parameters[0].value == 0.3
        assert original.parameters[0].std == pytest.approx((2.0 - 0.05) / 2.0)


class TestSampleNewConfig:
    def test_in_place_update_keeps_trained_model(self, make_leader, blobs, rng):
        configuration = make_leader()
        _train(configuration, blobs[:50])
        clusterer = configuration.clusterer

        assert configuration.sample_new_config(0.9, rng) is True
        assert configuration.clusterer is clusterer
        assert clusterer.points_seen == 50
        assert clusterer.radius == configuration.parameters[0].value
        assert clusterer.distance == configuration.parameters[1].value
        assert clusterer.merge == configuration.parameters[2].value

    def test_rebuild_when_in_place_unsupported(self, counting_factory, rng):
        configuration = Configuration(
            "counting",
            [ParameterSpec("alpha", ParameterKind.NUMERIC, 0.5, (0.0, 1.0))],
            counting_factory,
        )
        configuration.materialize()
        _train(configuration, np.ones((10, 2)))
        before = configuration.clusterer

        assert configuration.sample_new_config(0.9, rng) is False
        assert configuration.clusterer is not before
        assert configuration.clusterer.points_seen == 0
        assert configuration.clusterer.alpha == configuration.parameters[0].value

    def test_growing_k_after_initialisation_falls_back(self, make_kmeans, blobs):
        configuration = make_kmeans(k=2, warmup=10)
        _train(configuration, blobs[:30])
        configuration.parameters[0].value = 5
        assert configuration.try_update_in_place() is False

    def test_shrinking_k_updates_in_place(self, make_kmeans, blobs):
        configuration = make_kmeans(k=4, warmup=10)
        _train(configuration, blobs[:30])
        configuration.parameters[0].value = 2
        assert configuration.try_update_in_place() is True
        assert configuration.clusterer.get_clustering_result().n_clusters == 2

    def test_unmaterialized_configuration_is_materialized(self, make_kmeans, rng):
        configuration = make_kmeans().duplicate()
        assert configuration.sample_new_config(0.9, rng) is False
        assert configuration.is_materialized

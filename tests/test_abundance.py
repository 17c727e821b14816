import pytest

from seqcluster.clustering.abundance import AbundanceSummary, ClusterAbundance, summarize_abundance


def test_counts_and_relative_abundance():
    summary = summarize_abundance([1, 0, 0, -1, 1, 1], 6)

    assert [entry.cluster for entry in summary.summary] == [0, 1]
    assert [entry.count for entry in summary.summary] == [2, 3]
    assert summary.summary[0].relative_abundance == pytest.approx(2 / 5)
    assert summary.summary[1].relative_abundance == pytest.approx(3 / 5)
    assert summary.total_sequences == 6
    assert summary.clustered_sequences == 5
    assert summary.noise_sequences == 1


def test_entries_sorted_by_cluster_id():
    summary = summarize_abundance([3, 2, 1, 0, 3], 5)
    assert [entry.cluster for entry in summary.summary] == [0, 1, 2, 3]


def test_all_noise():
    summary = summarize_abundance([-1, -1, -1], 3)

    assert summary.summary == []
    assert summary.clustered_sequences == 0
    assert summary.noise_sequences == 3


def test_empty_labels():
    summary = summarize_abundance([], 0)
    assert summary == AbundanceSummary(summary=[], total_sequences=0, clustered_sequences=0, noise_sequences=0)


def test_totals_are_consistent():
    labels = [0, 1, -1, 2, 2, -1, 0, 0]
    summary = summarize_abundance(labels, len(labels))

    assert sum(entry.count for entry in summary.summary) == summary.clustered_sequences
    assert summary.clustered_sequences + summary.noise_sequences == summary.total_sequences
    assert sum(entry.relative_abundance for entry in summary.summary) == pytest.approx(1.0)


def test_to_dict_uses_response_field_names():
    summary = summarize_abundance([0, 0, 0], 3)

    assert summary.to_dict() == {
        "summary": [{"cluster": 0, "count": 3, "relativeAbundance": 1.0}],
        "totalSequences": 3,
        "clusteredSequences": 3,
        "noiseSequences": 0,
    }


def test_entry_types_are_builtin():
    entry = summarize_abundance([0], 1).summary[0]

    assert entry == ClusterAbundance(cluster=0, count=1, relative_abundance=1.0)
    assert type(entry.cluster) is int
    assert type(entry.count) is int

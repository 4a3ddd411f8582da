from runner.models import FetchResult
from runner.utils import expected_statuses, percentile, summarize

from .conftest import HASH, MANIFEST_ID, PREFIX

GOOD_ASSET = f"/dl/assetbundles/Android/x/{PREFIX}/{HASH}"
BAD_ASSET = f"/dl/assetbundles/Android/x/{PREFIX}/{HASH.lower()}"
GOOD_MANIFEST = f"/dl/manifests/Android/{MANIFEST_ID}/assetbundle.manifest"


def test_percentile():
    assert percentile([], 0.95) == 0.0
    assert percentile([5.0], 0.95) == 5.0
    assert percentile([0.0, 10.0], 0.5) == 5.0


def test_expected_statuses_follow_grammar():
    accepted = {200, 308}
    assert expected_statuses(GOOD_ASSET, accepted) == accepted
    assert expected_statuses(GOOD_MANIFEST, accepted) == accepted
    assert expected_statuses(BAD_ASSET, accepted) == {403}
    assert expected_statuses("/info", accepted) == {200}
    assert expected_statuses("/elsewhere", accepted) == {404}


def test_summarize_all_expected():
    results = [
        FetchResult(path=GOOD_ASSET, status_code=200, size=10, elapsed_ms=1.0),
        FetchResult(path=BAD_ASSET, status_code=403, size=0, elapsed_ms=2.0),
    ]
    summary, code = summarize(results, requested=2, accepted={200})
    assert code == 0
    assert summary["by_status"] == {"200": 1, "403": 1}
    assert summary["bytes"] == 10
    assert summary["unexpected"] == []


def test_summarize_flags_unexpected_and_missing():
    results = [FetchResult(path=GOOD_MANIFEST, status_code=404, size=0, elapsed_ms=1.0)]
    summary, code = summarize(results, requested=2, accepted={200})
    assert code == 1
    assert summary["unexpected"][0]["path"] == GOOD_MANIFEST
    assert summary["unexpected"][0]["expected"] == [200]

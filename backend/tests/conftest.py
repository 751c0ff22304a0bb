"""Shared test fixtures."""

import pytest

from ridelog.services import identity, repository
from ridelog.services.identity import UserIdentity


# Two-row ride: 10 s apart, both rows moving
SCENARIO_CSV = """latitude,longitude,timestamp,speed,current,trip_distance,used_energy
1,1,1000,5,10,0,0
2,2,1010,15,20,50,2
"""

RIDE_CSV = """latitude,longitude,timestamp,altitude,speed,voltage,current,used_energy,trip_distance
52.5200000,13.4050000,1700000000,34.0,0.0,41.9,0.5,0.000,0.0
52.5201000,13.4051000,1700000001,34.1,8.5,41.8,6.2,0.070,2.4
52.5202000,13.4052000,1700000002,34.2,17.0,41.6,12.9,0.215,7.1
52.5203000,13.4053000,1700000003,34.2,24.3,41.5,10.1,0.330,13.8
52.5204000,13.4054000,1700000004,34.3,25.1,41.5,7.8,0.420,20.8
52.5205000,13.4055000,1700000005,34.3,0.8,41.7,-3.5,0.420,21.0
"""

EXTERNAL_GPX = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="board-logger" xmlns="http://www.topografix.com/GPX/1/1" xmlns:sk="urn:example:board">
  <trk>
    <name>Evening loop</name>
    <trkseg>
      <trkpt lat="52.5" lon="13.4">
        <ele>34</ele>
        <time>2024-05-01T18:00:00Z</time>
        <extensions><sk:speed>0.5</sk:speed><sk:current>2</sk:current></extensions>
      </trkpt>
      <trkpt lat="52.501" lon="13.401">
        <ele>35</ele>
        <time>2024-05-01T18:00:30Z</time>
        <extensions><sk:speed>12</sk:speed><sk:current>9.5</sk:current></extensions>
      </trkpt>
      <trkpt lat="52.502" lon="13.402">
        <ele>35</ele>
        <time>2024-05-01T18:01:00Z</time>
        <extensions><sk:speed>14</sk:speed><sk:current>11</sk:current></extensions>
      </trkpt>
    </trkseg>
  </trk>
</gpx>
"""


@pytest.fixture
def scenario_csv():
    return SCENARIO_CSV


@pytest.fixture
def ride_csv():
    return RIDE_CSV


@pytest.fixture
def external_gpx():
    return EXTERNAL_GPX


@pytest.fixture
def data_folder(tmp_path):
    folder = tmp_path / "data"
    folder.mkdir()
    return folder


@pytest.fixture
def repo(data_folder):
    """Fresh global repository in a temporary folder."""
    yield repository.init_repository(data_folder)
    repository._repository = None


@pytest.fixture
def alice():
    return UserIdentity(user_id="auth0|alice", email="alice@example.com")


@pytest.fixture
def bob():
    return UserIdentity(user_id="auth0|bob", email="bob@example.com")


@pytest.fixture
def reset_identity_provider(monkeypatch):
    """Unconfigured identity provider, restored afterwards."""
    monkeypatch.delenv(identity.USERINFO_URL_ENV, raising=False)
    identity._identity_provider = None
    yield
    identity._identity_provider = None

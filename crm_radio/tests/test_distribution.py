import pandas as pd
import pytest
from sqlalchemy.exc import OperationalError

from crm_radio.services.analytics import DataSourceError, InvalidFilterValue, UnsupportedDimension, get_distribution
from crm_radio.services.formatting import COLOR_PALETTE


def _pairs(rows):
    return [(r["name"], r["value"]) for r in rows]


def _reference_sums(engine, **filters) -> dict:
    """Agrégat de référence calculé avec pandas, indépendamment du SQL généré."""
    with engine.connect() as conn:
        clients = pd.read_sql("SELECT id, statut_client, pays, nom_groupe FROM clients", conn)
        services = pd.read_sql("SELECT client_id, service_id, valeur_mensuelle FROM client_services", conn)
        refs = pd.read_sql("SELECT id AS service_id, editeur_id FROM ref_services", conn)
        editeurs = pd.read_sql("SELECT id AS editeur_id, nom AS name FROM ref_editeurs", conn)
    clients = clients[clients["statut_client"] != "Non Client"]
    for column, value in filters.items():
        clients = clients[clients[column] == value]
    df = (
        clients.rename(columns={"id": "client_id"})
        .merge(services, on="client_id")
        .merge(refs, on="service_id")
        .merge(editeurs, on="editeur_id")
    )
    df = df[df["name"].notna()]
    return df.groupby("name")["valeur_mensuelle"].sum().astype(float).to_dict()


def test_distribution_without_filters(db):
    rows = get_distribution(db, "editeur", {})
    assert _pairs(rows) == [("RCS", 330.0), ("WideOrbit", 130.0), ("Radio Assist", 0.0)]
    assert all(isinstance(r["value"], float) for r in rows)


def test_non_clients_never_contribute(db):
    # c4 (Non Client) porte 1000 sur RCS et WideOrbit
    rows = get_distribution(db, "editeur", {"statut_client": "Non Client"})
    assert rows == []


def test_scenario_clients_in_france(db):
    rows = get_distribution(db, "editeur", {"statut_client": "Client", "pays": "France"})
    # Radio Assist reste présent avec 0 : seul un nom NULL est écarté
    assert _pairs(rows) == [("RCS", 100.0), ("WideOrbit", 50.0), ("Radio Assist", 0.0)]


@pytest.mark.parametrize(
    "filters,expected",
    [
        ({"clientId": "2"}, [("RCS", 230.0)]),
        ({"nom_groupe": "Groupe Nord"}, [("WideOrbit", 80.0)]),
        ({"pays": "Belgique"}, [("RCS", 230.0)]),
        ({"type_marche": "1"}, [("WideOrbit", 130.0), ("RCS", 100.0), ("Radio Assist", 0.0)]),
        ({"logiciel": "Zetta"}, [("RCS", 330.0), ("WideOrbit", 50.0), ("Radio Assist", 0.0)]),
        ({"type_diffusion": "2"}, [("WideOrbit", 130.0), ("RCS", 100.0), ("Radio Assist", 0.0)]),
        ({"clientId": "999"}, []),
    ],
)
def test_each_filter_restricts_results(db, filters, expected):
    assert _pairs(get_distribution(db, "editeur", filters)) == expected


def test_unrecognized_keys_have_no_effect(db):
    assert get_distribution(db, "editeur", {"foo": "bar", "groupBy": "pays"}) == get_distribution(db, "editeur", {})


@pytest.mark.parametrize(
    "filters",
    [{}, {"statut_client": "Client"}, {"pays": "France"}, {"statut_client": "Client", "pays": "France"}],
)
def test_sum_matches_reference_aggregate(db, engine, filters):
    rows = get_distribution(db, "editeur", filters)
    reference = _reference_sums(engine, **filters)
    assert {r["name"]: r["value"] for r in rows} == pytest.approx(reference)
    assert sum(r["value"] for r in rows) == pytest.approx(sum(reference.values()))


def test_same_request_twice_is_idempotent(db):
    first = get_distribution(db, "editeur", {"pays": "France"})
    second = get_distribution(db, "editeur", {"pays": "France"})
    assert _pairs(first) == _pairs(second)


def test_colors_follow_ordinal_position(db):
    rows = get_distribution(db, "editeur", {})
    assert [r["color"] for r in rows] == [COLOR_PALETTE[i % 6] for i in range(len(rows))]


def test_color_is_not_tied_to_entity(db):
    # Sans la ligne RCS en tête, WideOrbit prend la première couleur
    all_rows = {r["name"]: r["color"] for r in get_distribution(db, "editeur", {})}
    nord = {r["name"]: r["color"] for r in get_distribution(db, "editeur", {"nom_groupe": "Groupe Nord"})}
    assert all_rows["WideOrbit"] == COLOR_PALETTE[1]
    assert nord["WideOrbit"] == COLOR_PALETTE[0]


class RecordingSession:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def execute(self, *args, **kwargs):
        self.calls.append(args)
        if self.error:
            raise self.error
        raise AssertionError("unexpected query")


@pytest.mark.parametrize("dimension", [None, "logiciel"])
def test_unsupported_dimension_touches_no_data_source(dimension):
    session = RecordingSession()
    with pytest.raises(UnsupportedDimension):
        get_distribution(session, dimension, {"pays": "France"})
    assert session.calls == []


def test_invalid_client_id_touches_no_data_source():
    session = RecordingSession()
    with pytest.raises(InvalidFilterValue):
        get_distribution(session, "editeur", {"clientId": "abc"})
    assert session.calls == []


def test_data_source_failure_is_wrapped_and_logged(caplog):
    session = RecordingSession(error=OperationalError("SELECT ...", {"p1": "France"}, Exception("connexion perdue")))
    with pytest.raises(DataSourceError) as exc:
        get_distribution(session, "editeur", {"pays": "France"})
    assert exc.value.status_code == 500
    assert "France" not in exc.value.message
    assert len(session.calls) == 1
    assert any("Analytics query failed" in r.getMessage() for r in caplog.records)

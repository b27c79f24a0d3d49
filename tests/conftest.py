from datetime import date

import pytest

from tariff_comparator.catalog.csv_parser import parse_semicolon_text
from tariff_comparator.catalog.models import Offer
from tariff_comparator.catalog.offer_builder import build_catalog

PRICES_CSV = "\n".join([
    "COM;COD_Proposta;Pot_Cont;Contagem;TF;TV|TVFV|TVP;TVV|TVC;TVVz",
    "EDP;EDP01;4,6;1;0,2500;0,1600;;",
    "EDP;EDP01;4,6;1;0,2600;0,1700;;",
    "EDP;EDP01;4,6;2;0,2500;0,2000;0,1000;",
    "EDP;EDP01;6,9;1;0,3500;0,1600;;",
    "GALP;GAL01;4,6;1;0,2000;0,1500;;",
    "END;END01;4,6;1;0,1000;0,0500;;",
    "IBER;IBD01;4,6;1;0,2000;0,1400;;",
    "GOLD;GOLD01;4,6;1;0,2500;0,1600;;",
    "GOLD;GOLD01;3,45;1;0;0,1500;;",
    "NOS;NOS01;4,6;1;0,2000;0,1500;;",
])

CONDITIONS_CSV = "\n".join([
    "COM;COD_Proposta;NomeProposta;Fornecimento;Segmento;ContactoComercialTel;LinkOfertaCom;LinkCOM;"
    "Data ini;Data fim;FiltroFidelização;DuracaoContrato;TxTFidelização;TxTOferta;TxTRestricoesAdic;FiltroPrecosIndex",
    "EDP;EDP01;EDP Simples;ELE;Dom;808 53 53 53;https://www.edp.pt/simples;https://www.edp.pt;"
    "01/01/2025;31/12/2025;N;;;Desconto de 5€ na fatura durante 6 meses;;N",
    "GALP;GAL01;Galp Casa;ELE;Dom;;;https://galp.pt;01/01/2024;31/12/2024;;;Fidelização de 12 meses;;;N",
    "END;END01;Endesa Gas;GN;Dom;;;;01/01/2025;31/12/2025;N;;;;;N",
    "IBER;IBD01;Iberdrola Tarifa Diário;ELE;Dom;;;;01/01/2025;31/12/2026;S;24;"
    "Contrato com permanência de 24 meses;;;S",
    "GOLD;GOLD01;Gold Base;ELE;Dom;;;;;;N;;;Recebe 50€ de oferta na adesão;;N",
])

TODAY = date(2025, 6, 1)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def prices():
    return parse_semicolon_text(PRICES_CSV)


@pytest.fixture
def conditions():
    return parse_semicolon_text(CONDITIONS_CSV)


@pytest.fixture
def catalog(prices, conditions):
    return build_catalog(prices, conditions, today=TODAY)


@pytest.fixture
def offers(catalog):
    return catalog.offers


@pytest.fixture
def make_offer():
    def _make(**overrides):
        fields = dict(
            provider_code="TEST",
            proposal_code="T01",
            power_kva=4.6,
            tariff_structure=1,
            fixed_daily_rate=0.25,
            peak_rate=0.16,
            tariff_name="Test Offer",
            supply_type="ELE",
        )
        fields.update(overrides)
        return Offer(**fields)

    return _make


@pytest.fixture
def data_dir(tmp_path):
    raw = tmp_path / "raw"
    raw.mkdir()
    (raw / "Precos_ELEGN.csv").write_text("\ufeff" + PRICES_CSV.replace("\n", "\r\n"), encoding="utf-8")
    (raw / "CondComerciais.csv").write_text(CONDITIONS_CSV, encoding="utf-8")
    return tmp_path

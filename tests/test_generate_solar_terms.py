import json

from saju import generate_solar_terms
from saju.solar_terms import build_dataset, load_dataset


def test_cli_writes_loadable_table(tmp_path, capsys):
    output = tmp_path / "terms.json"
    code = generate_solar_terms.main(["--start", "2023", "--end", "2024", "--output", str(output)])

    assert code == 0
    assert "Wrote solar terms" in capsys.readouterr().out
    assert sorted(json.loads(output.read_text(encoding="utf-8"))) == ["2023", "2024"]
    assert load_dataset(output) == build_dataset(2023, 2024)


def test_cli_verify(tmp_path, capsys):
    output = tmp_path / "terms.json"
    code = generate_solar_terms.main(["--start", "2024", "--end", "2024", "--output", str(output), "--verify"])

    assert code == 0
    assert "Largest deviation from Swiss Ephemeris" in capsys.readouterr().out


def test_cli_rejects_reversed_range(tmp_path, capsys):
    code = generate_solar_terms.main(["--start", "2025", "--end", "2024", "--output", str(tmp_path / "x.json")])
    assert code == 1
    assert "--start" in capsys.readouterr().err


def test_verify_dataset_reports_worst_year():
    worst = generate_solar_terms.verify_dataset(build_dataset(2000, 2001))
    assert 0 <= worst < 3600

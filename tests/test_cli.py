import pyarrow as pa
import pyarrow.csv as pcsv
import pyarrow.parquet as pq
from shapely import from_wkb, to_wkb
from shapely.geometry import LineString, Point

from shape_serde.cli import main
from shape_serde.serde import deserialize


def write_wkb_parquet(path):
    geoms = [Point(0, 0), LineString([(1, 1), (4, 6)]), None]
    table = pa.table({
        "name": ["a", "b", "c"],
        "geometry": pa.array([None if g is None else to_wkb(g) for g in geoms], type=pa.binary()),
    })
    pq.write_table(table, path)


def test_encode_bounds_decode(tmp_path, capsys):
    src = tmp_path / "src.parquet"
    enc = tmp_path / "enc.parquet"
    dec = tmp_path / "dec.parquet"
    csv_path = tmp_path / "bounds.csv"
    write_wkb_parquet(src)

    assert main(["encode", "--input", str(src), "--output", str(enc)]) == 0
    encoded = pq.read_table(enc)
    assert encoded["name"].to_pylist() == ["a", "b", "c"]
    assert deserialize(encoded["geometry"][1].as_py()).equals(LineString([(1, 1), (4, 6)]))

    assert main(["bounds", "--input", str(enc), "--output", str(csv_path)]) == 0
    assert capsys.readouterr().out.strip() == "0.0 0.0 4.0 6.0"
    bounds = pcsv.read_csv(csv_path)
    assert bounds.num_rows == 3
    assert bounds["xmax"].to_pylist()[:2] == [0.0, 4.0]

    assert main(["decode", "--input", str(enc), "--output", str(dec)]) == 0
    decoded = pq.read_table(dec)
    assert from_wkb(decoded["geometry"][0].as_py()).equals(Point(0, 0))
    assert decoded["geometry"][2].as_py() is None


def test_missing_geometry_column(tmp_path):
    src = tmp_path / "src.parquet"
    write_wkb_parquet(src)
    rc = main(["encode", "--input", str(src), "--output", str(tmp_path / "o.parquet"), "--geom-col", "geom"])
    assert rc == 1


def test_bounds_of_malformed_column(tmp_path):
    path = tmp_path / "bad.parquet"
    pq.write_table(pa.table({"geometry": pa.array([b"\x06\xff\x00\x00\x00"], type=pa.binary())}), path)
    assert main(["bounds", "--input", str(path)]) == 1


def test_encode_of_invalid_wkb(tmp_path):
    path = tmp_path / "bad_wkb.parquet"
    pq.write_table(pa.table({"geometry": pa.array([b"\x01\x02\x03"], type=pa.binary())}), path)
    assert main(["encode", "--input", str(path), "--output", str(tmp_path / "o.parquet")]) == 1

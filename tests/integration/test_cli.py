import json

import numpy as np
import pytest

from cli.main import main


def test_list_presets(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--list-presets"])
    assert excinfo.value.code == 0
    assert set(capsys.readouterr().out.split()) == {"blobs-smoke", "mnist", "xor"}


def test_train_then_predict(tmp_path, capsys):
    weights = tmp_path / "w.bin"
    main(
        [
            "--preset",
            "xor",
            "--epochs",
            "3",
            "--seed",
            "1",
            "--run-dir",
            str(tmp_path / "run"),
            "--out",
            str(weights),
            "--log-level",
            "WARNING",
        ]
    )
    summary = json.loads(capsys.readouterr().out)
    assert summary["weights"] == str(weights)
    assert summary["evaluation"]["samples"] == 80
    assert weights.exists()

    sample = tmp_path / "s.npy"
    np.save(sample, np.array([1.0, 0.0]))
    main(["--in", str(weights), "--sample", str(sample)])
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("0: ") and lines[1].startswith("1: ")
    total = sum(float(line.split(": ")[1]) for line in lines)
    assert total == pytest.approx(1.0, abs=1e-5)


def test_predict_requires_sample(tmp_path):
    weights = tmp_path / "w.bin"
    from densestack.training import Network

    Network([2, 2], seed=0).save_weights(weights)
    with pytest.raises(SystemExit):
        main(["--in", str(weights)])


def test_bad_weight_file_exits_with_message(tmp_path):
    bogus = tmp_path / "bogus.bin"
    bogus.write_bytes(b"\x01")
    sample = tmp_path / "s.txt"
    sample.write_text("0 1")
    with pytest.raises(SystemExit) as excinfo:
        main(["--in", str(bogus), "--sample", str(sample)])
    assert "Truncated" in str(excinfo.value.code)


def test_unsupported_dataset_suffix(tmp_path):
    with pytest.raises(SystemExit):
        main(["--in", str(tmp_path / "data.csv"), "--run-dir", str(tmp_path)])

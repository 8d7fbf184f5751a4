from conftest import make_noise_image, save_image


def test_cli_resizes_and_saves(tmp_path, capsys):
    import resize_cli

    path = save_image(make_noise_image(200, 150), tmp_path / "pic.png")
    code = resize_cli.main([str(path), "--max-bytes", "20000", "--save"])

    assert code == 0
    saved = tmp_path / "pic.png.jpg"
    assert saved.exists()
    assert saved.stat().st_size <= 20000
    out = capsys.readouterr().out
    assert " x " in out
    assert "Saved to" in out


def test_cli_png_output_path(tmp_path):
    import resize_cli

    path = save_image(make_noise_image(64, 64), tmp_path / "pic.bmp", fmt="BMP")
    target = tmp_path / "out" / "small.png"
    code = resize_cli.main([str(path), "--png", "--max-bytes", "5000", "-o", str(target)])

    assert code == 0
    assert target.read_bytes().startswith(b"\x89PNG")


def test_cli_reports_missing_file(tmp_path, capsys):
    import resize_cli

    code = resize_cli.main([str(tmp_path / "missing.jpg")])
    assert code == 1
    assert "Unable to process file." in capsys.readouterr().out


def test_cli_prompts_for_filename(tmp_path, monkeypatch, capsys):
    import resize_cli

    path = save_image(make_noise_image(40, 30), tmp_path / "prompted.png")
    monkeypatch.setattr("builtins.input", lambda _prompt: str(path))

    assert resize_cli.main([]) == 0
    assert "Hello." in capsys.readouterr().out


def test_cli_rejects_bad_budget(tmp_path):
    import resize_cli

    assert resize_cli.main([str(tmp_path / "x.png"), "--max-bytes", "0"]) == 2


def test_cli_prints_dimensions_only(tmp_path, capsys):
    import resize_cli

    path = save_image(make_noise_image(200, 150), tmp_path / "dims.png")
    assert resize_cli.main([str(path), "--max-bytes", "20000"]) == 0

    line = capsys.readouterr().out.strip().splitlines()[-1]
    width, height = (int(part) for part in line.split(" x "))
    assert 0 < width < 200
    assert height == (width * 150) // 200


def test_cli_rejects_bad_trial_limit(tmp_path, capsys):
    import resize_cli

    path = save_image(make_noise_image(40, 30), tmp_path / "limit.png")
    assert resize_cli.main([str(path), "--max-trials", "0"]) == 2
    assert "max_trials must be > 0" in capsys.readouterr().out


def test_cli_rejects_bad_time_budget(tmp_path, capsys):
    import resize_cli

    path = save_image(make_noise_image(40, 30), tmp_path / "budget.png")
    assert resize_cli.main([str(path), "--time-budget", "0"]) == 2
    assert "Error:" in capsys.readouterr().out


def test_cli_reports_unwritable_output(tmp_path, capsys):
    import resize_cli

    path = save_image(make_noise_image(40, 30), tmp_path / "src.png")
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"a file, not a directory")

    code = resize_cli.main([str(path), "-o", str(blocker / "out.jpg")])
    assert code == 1
    assert "could not save" in capsys.readouterr().out

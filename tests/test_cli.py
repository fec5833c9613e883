import piexif
from click.testing import CliRunner
from PIL import Image

from main import cli


def _size(path):
    with Image.open(path) as img:
        return img.size


def test_process_border_and_ratio(tmp_path, write_image):
    write_image("photo.jpg", size=(40, 20))
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        cli,
        [
            "process",
            str(tmp_path / "photo.jpg"),
            "--output-dir",
            str(out_dir),
            "--border",
            "5",
            "--border-color",
            "black",
            "--ratio",
            "1:1",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "1 written, 0 skipped, 0 failed" in result.output
    assert _size(out_dir / "photo.png") == (50, 50)


def test_process_with_recipe_and_final_width(tmp_path, write_image):
    write_image("wide.png", size=(400, 200))
    recipe = tmp_path / "story.txt"
    recipe.write_text("add-border -w 20 -c white\nset-aspect-ratio -x 9 -y 16 -c #000000\n")
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        cli,
        [
            "process",
            str(tmp_path / "wide.png"),
            "--output-dir",
            str(out_dir),
            "--recipe",
            str(recipe),
            "--final-width",
            "200",
            "--format",
            "jpg",
        ],
    )

    assert result.exit_code == 0, result.output
    # 160x80 content, 200x120 framed, padded to 9:16
    assert _size(out_dir / "wide.jpg") == (200, 356)


def test_process_rejects_bad_color(tmp_path, write_image):
    write_image("photo.png")
    result = CliRunner().invoke(
        cli,
        [
            "process",
            str(tmp_path / "photo.png"),
            "--output-dir",
            str(tmp_path / "out"),
            "--border",
            "3",
            "--border-color",
            "#12345z",
        ],
    )
    assert result.exit_code == 2
    assert "Invalid hex color" in result.output


def test_process_requires_a_step(tmp_path, write_image):
    write_image("photo.png")
    result = CliRunner().invoke(
        cli, ["process", str(tmp_path / "photo.png"), "--output-dir", str(tmp_path / "out")]
    )
    assert result.exit_code == 2


def test_process_rejects_non_positive_sizes(tmp_path, write_image):
    write_image("photo.png")
    base = ["process", str(tmp_path / "photo.png"), "--output-dir", str(tmp_path / "out")]
    for extra in (["--size", "0", "100"], ["--size", "100", "-5"], ["--final-width", "0"]):
        result = CliRunner().invoke(cli, base + extra)
        assert result.exit_code == 2, result.output
    assert not (tmp_path / "out" / "photo.png").exists()


def test_process_rejects_zero_size_in_recipe(tmp_path, write_image):
    write_image("photo.png")
    recipe = tmp_path / "steps.txt"
    recipe.write_text("size -w 0 -h 5\n")
    result = CliRunner().invoke(
        cli,
        [
            "process",
            str(tmp_path / "photo.png"),
            "--output-dir",
            str(tmp_path / "out"),
            "--recipe",
            str(recipe),
        ],
    )
    assert result.exit_code == 2
    assert "steps.txt:1:" in result.output


def test_process_honours_exif_orientation(tmp_path, write_image):
    exif = piexif.dump({"0th": {piexif.ImageIFD.Orientation: 6}})
    write_image("sideways.jpg", size=(40, 20), exif=exif)
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        cli,
        [
            "process",
            str(tmp_path / "sideways.jpg"),
            "--output-dir",
            str(out_dir),
            "--ratio",
            "9:16",
            "--format",
            "jpg",
        ],
    )

    assert result.exit_code == 0, result.output
    with Image.open(out_dir / "sideways.jpg") as img:
        width, height = img.size
        orientation = piexif.load(img.info["exif"])["0th"][piexif.ImageIFD.Orientation]
    # displayed 20x40 padded sideways to 9:16, not 40x20 padded to 40x71
    assert height == 40
    assert width in (22, 23)
    assert orientation == 1


def test_process_mirrors_input_folders(tmp_path, write_image):
    src = tmp_path / "in"
    (src / "a").mkdir(parents=True)
    (src / "b").mkdir()
    write_image("in/a/x.png")
    write_image("in/b/x.png")
    write_image("in/x.jpg")
    write_image("in/x.png")
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(cli, ["process", str(src), "--output-dir", str(out_dir), "--grayscale"])

    assert result.exit_code == 1
    assert "3 written, 0 skipped, 1 failed" in result.output
    assert (out_dir / "a" / "x.png").exists()
    assert (out_dir / "b" / "x.png").exists()
    assert (out_dir / "x.png").exists()


def test_process_zero_ratio_is_skipped(tmp_path, write_image):
    write_image("photo.png", size=(30, 10))
    out_dir = tmp_path / "out"
    result = CliRunner().invoke(
        cli,
        ["process", str(tmp_path / "photo.png"), "--output-dir", str(out_dir), "--ratio", "0:0", "--grayscale"],
    )
    assert result.exit_code == 0, result.output
    assert _size(out_dir / "photo.png") == (30, 10)


def test_process_reports_failures(tmp_path, write_image):
    write_image("ok.png")
    (tmp_path / "broken.png").write_bytes(b"junk")
    result = CliRunner().invoke(
        cli,
        ["process", str(tmp_path), "--output-dir", str(tmp_path / "out"), "--grayscale"],
    )
    assert result.exit_code == 1
    assert "1 written, 0 skipped, 1 failed" in result.output
    assert (tmp_path / "out" / "ok.png").exists()


def test_collage_command(tmp_path, write_image):
    a = write_image("a.png", size=(200, 100))
    b = write_image("b.png", size=(200, 150))
    dest = tmp_path / "collage.png"

    result = CliRunner().invoke(
        cli,
        [
            "collage",
            str(a),
            str(b),
            "--output",
            str(dest),
            "--orientation",
            "horizontal",
            "--gap",
            "4",
            "--gap-color",
            "#000000",
        ],
    )

    assert result.exit_code == 0, result.output
    assert _size(dest) == (337, 100)


def test_collage_command_needs_two_images(tmp_path, write_image):
    a = write_image("a.png")
    result = CliRunner().invoke(cli, ["collage", str(a), "--output", str(tmp_path / "c.png")])
    assert result.exit_code == 1
    assert "at least 2 images" in result.output

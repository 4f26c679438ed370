from __future__ import annotations
import argparse, logging, pathlib, sys
from . import write
from .config import get_bpm, get_ticks_per_beat, load_config
from .errors import SmfError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_EXPORT_NAME = "midi-forge.mid"


def _init_logging(verbose: bool):
    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _resolve(path: str) -> pathlib.Path:
    return pathlib.Path(path).expanduser().resolve()


def main(argv=None):
    p = argparse.ArgumentParser(description="Standard MIDI File <-> track/note model")
    p.add_argument("--in", dest="infile", required=True, help="Input .mid/.midi or project .json")
    p.add_argument("--out", dest="outfile", default=None,
                   help="Write an SMF file with all tracks (project input default: config export_filename next to the input)")
    p.add_argument("--no-export", action="store_true", help="Do not write the combined SMF for project input")
    p.add_argument("--json", dest="json_out", default=None, help="Write the decoded project as JSON")
    p.add_argument("--parts-out-dir", dest="parts_out_dir", default=None, help="Write one SMF per track into this directory")
    p.add_argument("--bpm", type=float, default=None, help="Tempo for export (default: file tempo, else config)")
    p.add_argument("--tpb", type=int, default=None, help="Ticks per beat for export (default: config)")
    p.add_argument("--config", dest="config", default=None, help="YAML config (defaults applied if omitted)")
    p.add_argument("--verify", action="store_true", help="Re-read exported data with mido")
    p.add_argument("-v", "--verbose", action="store_true")

    args = p.parse_args(argv)
    _init_logging(args.verbose)

    in_path = _resolve(args.infile)
    if not in_path.exists():
        print(f"[cli] ERROR: Input not found: {in_path}", file=sys.stderr)
        sys.exit(1)

    cfg = load_config(args.config)
    tpb = args.tpb or get_ticks_per_beat(cfg)
    verify = args.verify or bool(cfg.get("verify_export", False))
    is_project = in_path.suffix.lower() == ".json"
    print(f"[cli] infile = {in_path}")

    out_path = None
    if args.outfile:
        out_path = _resolve(args.outfile)
    elif is_project and not args.no_export:
        # Default: export name from config, next to the project
        out_path = in_path.parent / (cfg.get("export_filename") or DEFAULT_EXPORT_NAME)

    try:
        if is_project:
            project = write.load_project(str(in_path))
            tracks, file_bpm = project["tracks"], project["bpm"]
        else:
            song = write.read_midi(str(in_path), track_defaults=cfg.get("track_defaults"))
            tracks, file_bpm = song.tracks, song.bpm
            print(f"[cli] format={song.header.format} division={song.header.division} tempo={file_bpm or 'none'}")
        bpm = args.bpm or file_bpm or get_bpm(cfg)

        for tr in tracks:
            print(f"[cli] {tr.id}: {tr.name} notes={len(tr.notes)}")

        # encode everything first; no file is touched if any output fails
        json_text = write.project_json(tracks, bpm) if args.json_out else None
        midi_data = write.export_bytes(tracks, bpm=bpm, ticks_per_beat=tpb, verify=verify) if out_path else None
        parts = (write.export_parts(tracks, bpm=bpm, ticks_per_beat=tpb, verify=verify)
                 if args.parts_out_dir else None)
    except SmfError as e:
        print(f"[cli] ERROR ({e.kind}): {e}", file=sys.stderr)
        sys.exit(2)
    except (ValueError, KeyError) as e:
        print(f"[cli] ERROR: invalid project data: {e}", file=sys.stderr)
        sys.exit(2)

    if json_text is not None:
        out = _resolve(args.json_out)
        out.write_text(json_text, encoding="utf-8")
        print(f"[cli] json      -> {out}")

    if midi_data is not None:
        out_path.write_bytes(midi_data)
        print(f"[cli] midi      -> {out_path}")

    if parts is not None:
        out_dir = _resolve(args.parts_out_dir)
        write.write_parts(parts, str(out_dir))
        print(f"[cli] parts     -> {out_dir}")

    total_notes = sum(len(t.notes) for t in tracks)
    print(f"[cli] Done. tracks={len(tracks)} notes={total_notes} tpb={tpb} bpm={bpm:g}")


if __name__ == "__main__":
    main()

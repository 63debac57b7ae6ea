from __future__ import annotations

"""CLI for fretcoach: fretboard lookups, CAGED shapes, quizzes and stats."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List

from ..config.config import load_config, shape_bank_from_config, tuning_from_config, validate_config
from ..policy.difficulty import DifficultyConfig
from ..results.schema import QUIZ_MODES, AttemptRecord
from ..samplers.quiz_sequencer import COMBO, QuizConfig, QuizSequencer
from ..stats.stats import SessionScoreConfig, accuracy_label, format_time, score_band, score_session
from ..theory.fretboard import FretPosition, describe, note_at, positions_of
from ..theory.caged import FIFTH, ROOT, THIRD, random_shape_prompt, shape_chord_tones
from ..theory.note_utils import note_name, pc_of
from ..util.randomness import make_rng, seed_if_needed
from .explain import enable as explain_enable


def _read_json_list(path: str) -> List[Any]:
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of records")
    return data


def _note_arg(value: str) -> int | str:
    return int(value) if value.isdigit() else value


def _cmd_note_at(args, cfg) -> int:
    tuning = tuning_from_config(cfg)
    pc = note_at(tuning, args.string, args.fret)
    print(f"{FretPosition(args.string, args.fret)}: {note_name(pc)}")
    return 0


def _cmd_positions(args, cfg) -> int:
    tuning = tuning_from_config(cfg)
    max_fret = cfg["fretboard"]["max_fret"] if args.max_fret is None else args.max_fret
    positions = positions_of(tuning, _note_arg(args.note), max_fret)
    for line in describe(positions, tuning):
        print(line)
    print(f"{len(positions)} positions up to fret {max_fret}")
    return 0


def _cmd_shape(args, cfg) -> int:
    tuning = tuning_from_config(cfg)
    bank = shape_bank_from_config(cfg)
    max_fret = cfg["fretboard"]["max_fret"] if args.max_fret is None else args.max_fret
    if args.random:
        prompt = random_shape_prompt(make_rng(args.seed))
        shape_id, root = prompt.shape_id, prompt.root
    elif args.shape and args.root:
        shape_id, root = args.shape.upper(), _note_arg(args.root)
    else:
        raise ValueError("shape needs SHAPE and ROOT, or --random")
    tones = shape_chord_tones(root)
    print(f"{shape_id} shape, root {note_name(pc_of(root))} "
          f"(R={note_name(tones[ROOT])} 3={note_name(tones[THIRD])} 5={note_name(tones[FIFTH])}):")
    for p in bank.transpose(shape_id, root, tuning, max_fret):
        print(f"  string {p.string_index} fret {p.fret:>2}  {p.interval_type}  {p.note_name}")
    return 0


def _cmd_quiz(args, cfg) -> int:
    tuning = tuning_from_config(cfg)
    history: List[AttemptRecord] = []
    if args.history:
        history = [AttemptRecord.model_validate(r) for r in _read_json_list(args.history)]
    sequencer = QuizSequencer(
        tuning=tuning,
        cfg=QuizConfig(**cfg["quiz"]),
        difficulty_cfg=DifficultyConfig(**cfg["difficulty"]),
        rng=make_rng(args.seed),
        max_fret=cfg["fretboard"]["max_fret"],
    )
    if len(history) >= sequencer.cfg.min_attempts_for_adaptive:
        print(sequencer.recommendation(history).reasoning)
    else:
        print(f"Not enough history ({len(history)} attempts), using a random {args.mode} quiz.")
    for i, q in enumerate(sequencer.build(history, args.count, fallback_mode=args.mode), start=1):
        print(f"{i:>2}. [{q.source}] {q.prompt()}")
    return 0


def _cmd_score_session(args, cfg) -> int:
    shapes = [s.strip() for s in args.shapes.split(",") if s.strip()]
    score = score_session(shapes, args.accuracy, args.elapsed, SessionScoreConfig(**cfg["session"]))
    print(f"Shapes: {', '.join(s.upper() for s in shapes)}")
    print(f"Accuracy: {accuracy_label(args.accuracy)}")
    print(f"Time: {format_time(args.elapsed)}")
    print(f"Score: {score} ({score_band(score)})")
    return 0


def _cmd_heatmap(args, cfg) -> int:
    # pandas-backed, imported on demand
    from analytics import AnalyticsConfig, build_heatmap, heatmap_frame, performance_summary

    observations = _read_json_list(args.observations)
    sessions = _read_json_list(args.sessions) if args.sessions else []
    cells = build_heatmap(observations, AnalyticsConfig(**cfg["analytics"]))
    print(heatmap_frame(cells).round(2).to_string(na_rep="-"))
    summary = performance_summary(observations, sessions)
    print("")
    print(f"Sessions: {summary.session_count}")
    if summary.average_score is not None:
        print(f"Average score: {summary.average_score:.1f}")
        print(f"Average time: {format_time(summary.average_elapsed_seconds)}")
        print(f"Best score: {summary.best_score}  Best time: {format_time(summary.best_elapsed_seconds)}")
    if summary.strongest_shape is not None:
        print(f"Strongest shape: {summary.strongest_shape}  Weakest shape: {summary.weakest_shape}")
        print(f"Strongest note: {note_name(summary.strongest_note)}  Weakest note: {note_name(summary.weakest_note)}")
    return 0


_COMMANDS = {
    "note-at": _cmd_note_at,
    "positions": _cmd_positions,
    "shape": _cmd_shape,
    "quiz": _cmd_quiz,
    "score-session": _cmd_score_session,
    "heatmap": _cmd_heatmap,
}


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=None, help="YAML config (defaults to the bundled defaults.yml)")
    common.add_argument("--explain", action="store_true", help="Print [EXPLAIN] trace lines")

    p = argparse.ArgumentParser(prog="fretcoach")
    sub = p.add_subparsers(dest="cmd", required=True)

    na = sub.add_parser("note-at", parents=[common], help="Note at a string/fret")
    na.add_argument("--string", type=int, required=True, help="String index, 0 = high string")
    na.add_argument("--fret", type=int, required=True)

    pp = sub.add_parser("positions", parents=[common], help="Every position of a note")
    pp.add_argument("note", help="Note name (C, F#, Bb) or pitch class 0-11")
    pp.add_argument("--max-fret", dest="max_fret", type=int, default=None)

    sp = sub.add_parser("shape", parents=[common], help="Transpose a CAGED shape")
    sp.add_argument("shape", nargs="?", help="C, A, G, E or D")
    sp.add_argument("root", nargs="?", help="Desired root note")
    sp.add_argument("--random", action="store_true", help="Pick a random shape and root")
    sp.add_argument("--seed", type=int, default=None)
    sp.add_argument("--max-fret", dest="max_fret", type=int, default=None)

    qp = sub.add_parser("quiz", parents=[common], help="Build a note finder question sequence")
    qp.add_argument("--history", default=None, help="JSON list of attempt records")
    qp.add_argument("--count", type=int, default=None)
    qp.add_argument("--mode", default=COMBO, choices=[COMBO, *QUIZ_MODES], help="Mode when history is too short")
    qp.add_argument("--seed", type=int, default=None)

    ss = sub.add_parser("score-session", parents=[common], help="Score a timed CAGED session")
    ss.add_argument("--shapes", required=True, help="Comma-separated shapes, e.g. C,A,G")
    ss.add_argument("--accuracy", type=int, required=True, help="Self-rated accuracy 1-5")
    ss.add_argument("--elapsed", type=float, required=True, help="Seconds taken")

    hp = sub.add_parser("heatmap", parents=[common], help="Shape x note accuracy heatmap")
    hp.add_argument("observations", help="JSON list of {shape, note, correct}")
    hp.add_argument("--sessions", default=None, help="JSON list of CAGED session records")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    seed_if_needed()
    if args.explain:
        explain_enable(True)
    try:
        cfg = validate_config(load_config(args.config))
        return _COMMANDS[args.cmd](args, cfg)
    except (FileNotFoundError, ValueError, KeyError) as e:
        # pydantic ValidationError is a ValueError
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

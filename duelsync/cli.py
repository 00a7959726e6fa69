"""
DuelSync CLI - Command-line interface for the engine.

Usage:
    duelsync simulate [--seed N]        Play a duel between two greedy clients
    duelsync validate-deck <file>       Validate decks in a JSON document
    duelsync serve [--host --port]      Run the room host API
"""

import argparse
import asyncio
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="DuelSync - Two-player card duel engine",
        prog="duelsync",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default WARNING)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a duel between two greedy clients")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    simulate_parser.add_argument("--max-turns", type=int, default=60, help="Stop after this many turns")
    simulate_parser.add_argument("--deck1", default=None, help="Deck for alice")
    simulate_parser.add_argument("--deck2", default=None, help="Deck for bob")

    # Validate command
    validate_parser = subparsers.add_parser("validate-deck", help="Validate decks in a JSON document")
    validate_parser.add_argument("deck_file", help='Path to {"decks": [...], "players": [...]} JSON')

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the room host API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "validate-deck":
        cmd_validate_deck(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


# =============================================================================
# simulate
# =============================================================================

def pick_greedy_action(state, player_id, rules):
    """
    Pick a move for the simulation driver.

    Plays the most expensive affordable card, then uses activated
    abilities, then attacks (face when allowed), then ends the turn.
    """
    from .engine_core import ActionType, FACE, legal_actions

    actions = legal_actions(state, player_id, rules)
    if not actions:
        return None
    if actions[0].action_type == ActionType.COMPLETE_MULLIGAN:
        return actions[0]

    player = state.get_player(player_id)
    plays = [a for a in actions if a.action_type == ActionType.PLAY_CARD]
    if plays:
        def cost(action):
            card = player.find_in_hand(action.payload.card_id)
            # Prefer targeted variants over fizzles
            return (card.design.mana_cost, action.payload.target_id is not None)
        return max(plays, key=cost)

    activations = [a for a in actions if a.action_type == ActionType.EFFECT_TRIGGER]
    if activations:
        return activations[0]

    attacks = [a for a in actions if a.action_type == ActionType.ATTACK]
    if attacks:
        face = [a for a in attacks if a.payload.target_id == FACE]
        return face[0] if face else attacks[0]

    for action in actions:
        if action.action_type == ActionType.END_TURN:
            return action
    return None


async def run_simulation(seed=None, max_turns=60, deck1=None, deck2=None):
    """
    Play a duel with two clients that sync through an in-memory room.

    Each client dispatches on its own GameInstance; the other client
    learns about the move only through the store.

    Returns:
        (final GameState, number of actions played)
    """
    from .config import load_config
    from .engine_core import GamePhase
    from .games.starter import ARCANE_DECK, VANGUARD_DECK, starter_loader
    from .session import SessionManager
    from .sync import InMemoryRoomStore

    config = load_config()
    manager = SessionManager(starter_loader(), InMemoryRoomStore(), config)
    host = await manager.create_room(
        "alice", deck1 or VANGUARD_DECK,
        "bob", deck2 or ARCANE_DECK,
        room_id="simulation",
        random_seed=seed,
    )
    clients = {
        player_id: await manager.join_room(host.room_id, player_id)
        for player_id in ("alice", "bob")
    }

    played = 0
    try:
        while True:
            state = host.instance.get_state()
            if state.is_over or state.current_turn > max_turns:
                break
            if state.phase == GamePhase.MULLIGAN:
                player_id = next(p.player_id for p in state.players if not p.mulligan_complete)
            else:
                player_id = state.active_player_id

            client = clients[player_id]
            action = pick_greedy_action(client.instance.get_state(), player_id, config.rules)
            if action is None:
                break
            client.instance.dispatch(action)
            await client.sync.flush()
            played += 1
    finally:
        final = host.instance.get_state()
        await manager.shutdown()
    return final, played


def cmd_simulate(args):
    """Play a duel between two greedy clients and print the outcome."""
    state, played = asyncio.run(run_simulation(args.seed, args.max_turns, args.deck1, args.deck2))

    print(f"Game {state.game_id} (seed {state.random_seed})")
    print(f"Actions: {played}, turns: {state.current_turn}, phase: {state.phase.value}")
    for p in state.players:
        print(f"  {p.name:<8} health {p.health:>3}  hand {len(p.hand):>2}  "
              f"deck {len(p.deck):>2}  board {len(p.board)}")
    if state.winner_id:
        print(f"Winner: {state.winner_id}")
    elif state.is_draw:
        print("Draw")
    else:
        print("No result (turn limit reached)")


# =============================================================================
# validate-deck
# =============================================================================

def cmd_validate_deck(args):
    """Validate every deck in a JSON document."""
    from .card_schema import validate_catalog
    from .loader import InMemoryDeckLoader

    try:
        loader = InMemoryDeckLoader.from_json_file(args.deck_file)
    except FileNotFoundError:
        print(f"Error: File not found: {args.deck_file}")
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {args.deck_file} is not valid JSON: {e}")
        sys.exit(1)

    failed = False
    for deck_id in loader.deck_ids:
        result = loader.load_deck(deck_id)
        if not result.ok:
            failed = True
            print(f"{deck_id}: FAILED - {result.error.message}")
            for err in result.error.details.get("errors", []):
                loc = ".".join(str(part) for part in err["loc"])
                print(f"  - {loc}: {err['msg']}")
            continue

        designs = {card.design.id: card.design for card in result.value}
        catalog = validate_catalog(designs.values())
        status = "OK" if catalog.valid else "FAILED"
        print(f"{deck_id}: {status} ({len(result.value)} cards, {len(designs)} designs)")
        for e in catalog.errors:
            print(f"  - {e}")
        for w in catalog.warnings:
            print(f"  ~ {w}")
        failed = failed or not catalog.valid

    if not loader.deck_ids:
        print("No decks found")
    if failed:
        sys.exit(1)


# =============================================================================
# serve
# =============================================================================

def cmd_serve(args):
    """Run the room host API with uvicorn."""
    import uvicorn

    uvicorn.run("duelsync.api.app:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()

"""Console UI for fillbox application."""

import requests

from core.config import VALID_MODES
from cli.api_client import FillboxAPIClient, error_detail

HELP = """Commands:
  <answer>        fill the first open box and check it
  <n> <answer>    fill box n and check it
  new             start a new round
  lists           show content lists
  use <n>         practice list n
  mode <MODE>     switch to WORDS, NUMBERS or LETTERS
  status          show achievements
  help            show this help
  exit            quit"""


class ConsoleUI:
    """Console user interface for fillbox application."""

    def __init__(self, client: FillboxAPIClient):
        self.client = client
        self.lists = []

    def print_board(self, round_state: dict):
        """Print every box in display order."""
        print('\n' + '=' * 40)
        for index, box_id in enumerate(round_state['box_order'], start=1):
            box = round_state['box_states'][box_id]
            decoration = box.get('decoration') or ' '
            if box['locked']:
                shown = f"[{box['target']}] ok"
            else:
                blanks = '_' * len(box['target'])
                shown = f"{box['entered'] or blanks}"
            print(f'  {index}. {decoration}  {shown}')
        print('=' * 40)

    def print_lists(self, selected_id: str | None):
        print('\nContent lists:')
        for index, content_list in enumerate(self.lists, start=1):
            marker = '*' if content_list['id'] == selected_id else ' '
            print(f" {marker} {index}. {content_list['title']} "
                  f"({content_list['mode'].lower()}, {len(content_list['items'])} items)")

    def print_status(self):
        achievements = self.client.get_achievements()
        print('\n' + '=' * 40)
        print('ACHIEVEMENTS')
        print('=' * 40)
        if not achievements:
            print('  None yet. Finish a round!')
        for achievement in achievements:
            print(f"  {achievement['id']} (earned {achievement['earned_at'][:10]})")
        print('=' * 40 + '\n')

    def open_boxes(self, round_state: dict) -> list[str]:
        return [
            box_id for box_id in round_state['box_order']
            if not round_state['box_states'][box_id]['locked']
        ]

    def submit(self, round_state: dict, box_number: int | None, answer: str) -> dict:
        """Type answer into a box and validate it. Returns the new round."""
        if box_number is None:
            open_ids = self.open_boxes(round_state)
            if not open_ids:
                return round_state
            box_id = open_ids[0]
        else:
            if not 1 <= box_number <= len(round_state['box_order']):
                print(f'No box {box_number}.')
                return round_state
            box_id = round_state['box_order'][box_number - 1]

        self.client.update_entry(box_id, answer)
        correct, new_state = self.client.validate_box(box_id)
        box = new_state['box_states'][box_id] if new_state else None
        if correct:
            print(f"  Yes! {box['target']}")
        elif box is not None and box['locked']:
            print('  That box is already done.')
        else:
            print('  Not quite, try again.')
        return new_state

    def handle_command(self, text: str, state: dict) -> bool:
        """Run a non-answer command. Returns False if text is not a command."""
        words = text.split()
        command = words[0].lower()
        if command == 'help':
            print(HELP)
        elif command == 'status':
            self.print_status()
        elif command == 'lists':
            self.lists = self.client.get_lists()
            self.print_lists(state.get('selected_list_id'))
        elif command == 'use' and len(words) == 2 and words[1].isdigit():
            index = int(words[1]) - 1
            if not 0 <= index < len(self.lists):
                print('No such list. Type "lists" to see them.')
            else:
                self.client.select_list(self.lists[index]['id'])
                print(f"Now practicing: {self.lists[index]['title']}")
        elif command == 'mode' and len(words) == 2 and words[1].upper() in VALID_MODES:
            self.client.update_config(mode=words[1].upper())
            print(f'Mode: {words[1].upper()}')
        elif command == 'new':
            self.client.start_round()
        else:
            return False
        return True

    def run(self):
        """Run the main application loop."""
        try:
            health = self.client.health_check()
            print(f"Connected to fillbox server ({health['service']})")
        except requests.RequestException:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        self.lists = self.client.get_lists()
        print('Fill every box to finish the round. Type "help" for commands.\n')

        while True:
            state = self.client.get_state()
            round_state = state['round']
            try:
                if round_state is None or round_state['completed']:
                    round_state = self.client.start_round()
            except requests.HTTPError as e:
                print(f'Error: {error_detail(e)}')
                self.print_lists(state.get('selected_list_id'))
                round_state = None

            if round_state is not None:
                self.print_board(round_state)

            user_input = input('==> ').strip()
            if user_input.lower() == 'exit':
                print('Goodbye!')
                return
            if not user_input:
                continue

            try:
                if self.handle_command(user_input, state):
                    continue
                if round_state is None:
                    print('Pick a list first ("lists", then "use <n>").')
                    continue
                words = user_input.split(maxsplit=1)
                if len(words) == 2 and words[0].isdigit():
                    round_state = self.submit(round_state, int(words[0]), words[1])
                else:
                    round_state = self.submit(round_state, None, user_input)
                if round_state and round_state['completed']:
                    self.print_board(round_state)
                    print('\n*** ROUND COMPLETE! Great job! ***\n')
            except requests.HTTPError as e:
                print(f'Error: {error_detail(e)}')

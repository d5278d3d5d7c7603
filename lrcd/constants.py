# Line protocol constants (command prefixes and reply texts)

# Commands are matched by case-sensitive literal prefix on the trimmed line.
CMD_NICK = "/NICK "
CMD_MSG = "/MSG "
CMD_LIST = "/LIST"
CMD_BC = "/BC "

DEFAULT_NICK_MAX_CHARS = 0
DEFAULT_MAX_LINE_BYTES = 4096

# Outbound line terminators selectable from the CLI.
NEWLINES = {
    "crlf": "\r\n",
    "lf": "\n",
    "lfcr": "\n\r",
}

# Replies
R_WELCOME = "Welcome to the chat server!"
R_NICK_HINT = "Use /NICK <nickname> to set your nickname."
R_NICK_SET = "Your nickname is now set to: {nick}"
R_NICK_IN_USE = "Nickname already in use. Choose a different nickname."
R_NICK_INVALID = "Invalid nickname."
R_REGISTER_FIRST = "You need to set your nickname at first."
R_CLIENT_LIST = "Client List: {names}"
R_MSG_USAGE = "Usage: /MSG <nickname> <message>"
R_BAD_COMMAND = "Please enter the correct command."
R_NOT_FOUND = "User {nick} not found or offline."
R_LINE_TOO_LONG = "Line too long."

# Routed message formats
F_BROADCAST = "{sender}: {body}"
F_BROADCAST_ECHO = "You: {body}"
F_PRIVATE = "{sender} (private): {body}"

COMMAND_USAGE = (
    CMD_NICK + "<nickname>",
    CMD_MSG + "<nickname> <message>",
    CMD_LIST,
    CMD_BC + "<message>",
)

"""Pure helpers shared by the game modules: answer scoring and turn rotation."""

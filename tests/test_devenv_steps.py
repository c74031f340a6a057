"""Tests for devenv/devenv_steps.py and full user-phase runs."""

from __future__ import annotations

import os
import subprocess
import sys
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from bootstrap.catalog import get_steps_for_phase
from bootstrap.runner import StepRunner
from bootstrap.steps import Phase, StepSkipped, StepStatus
from devenv.devenv_steps import (
    LOCAL_BIN_PATH,
    MISE_CRON,
    MISE_CRON_FILE,
    MISE_INSTALL_URL,
    NVIM_ARCHIVE_ROOT,
    TMUX_CONF,
    _run_installer,
    configure_default_directory,
    configure_git_email,
    configure_local_bin_path,
    configure_mise_activation,
    configure_mise_upgrades,
    configure_tmux,
    configure_tmux_autoattach,
    create_code_directory,
    code_directory_exists,
    git_name_configured,
    install_lazyvim,
    install_neovim,
    language_installer,
    local_bin_path_configured,
    mise_activation_configured,
    tmux_config_exists,
)
from tests.fakes import FakeHost, make_context, quiet_logger

OK = subprocess.CompletedProcess([], 0, "", "")
HOME = "/home/kuranai"
BASHRC = os.path.join(HOME, ".bashrc")


def user_context(host=None, **overrides):
    return make_context(host or FakeHost(), home=HOME, **overrides)


class TestLanguageInstaller(unittest.TestCase):
    def test_skips_with_warning_without_mise(self):
        ctx = user_context()
        with self.assertRaises(StepSkipped) as cm:
            language_installer("node@lts")(ctx)
        self.assertTrue(cm.exception.warning)
        self.assertIn("node@lts", cm.exception.message)

    def test_installs_global_version(self):
        ctx = user_context()
        ctx.host.mise_available = True
        language_installer("ruby@latest")(ctx)
        self.assertIn("ruby@latest", ctx.host.runtimes)


class TestGitIdentity(unittest.TestCase):
    @patch("devenv.devenv_steps.run", return_value=subprocess.CompletedProcess([], 1, "", ""))
    def test_unset_name_not_configured(self, mock_run):
        self.assertFalse(git_name_configured(user_context()))
        mock_run.assert_called_once_with(["git", "config", "--global", "user.name"], check=False)

    @patch("devenv.devenv_steps.run", return_value=OK)
    def test_sets_email(self, mock_run):
        ctx = user_context(git_email="dev@example.org")
        configure_git_email(ctx)
        mock_run.assert_called_once_with(["git", "config", "--global", "user.email", "dev@example.org"])


class TestDirectoriesAndFiles(unittest.TestCase):
    def test_code_directory_expanded_against_home(self):
        ctx = user_context()
        self.assertFalse(code_directory_exists(ctx))
        create_code_directory(ctx)
        self.assertIn(os.path.join(HOME, "code"), ctx.host.dirs)
        self.assertTrue(code_directory_exists(ctx))

    def test_mise_upgrade_cron_is_executable(self):
        ctx = user_context()
        configure_mise_upgrades(ctx)
        self.assertEqual(ctx.host.files[MISE_CRON_FILE], MISE_CRON)
        self.assertEqual(ctx.host.modes[MISE_CRON_FILE], 0o755)

    def test_tmux_config_written_once(self):
        ctx = user_context()
        self.assertFalse(tmux_config_exists(ctx))
        configure_tmux(ctx)
        self.assertEqual(ctx.host.files[os.path.join(HOME, ".tmux.conf")], TMUX_CONF)
        self.assertTrue(tmux_config_exists(ctx))


class TestShellProfileSteps(unittest.TestCase):
    def test_local_bin_path_appended_once(self):
        ctx = user_context()
        ctx.host.files[BASHRC] = "# ~/.bashrc\nalias ll='ls -l'"

        configure_local_bin_path(ctx)
        configure_local_bin_path(ctx)

        content = ctx.host.files[BASHRC]
        self.assertEqual(content.count(LOCAL_BIN_PATH), 1)
        self.assertTrue(content.startswith("# ~/.bashrc\nalias ll='ls -l'\n"))
        self.assertTrue(local_bin_path_configured(ctx))

    def test_mise_activation(self):
        ctx = user_context()
        self.assertFalse(mise_activation_configured(ctx))
        configure_mise_activation(ctx)
        self.assertIn('eval "$(~/.local/bin/mise activate bash)"', ctx.host.files[BASHRC])
        self.assertTrue(mise_activation_configured(ctx))

    def test_default_directory_uses_code_dir(self):
        ctx = user_context(code_dir="~/src")
        configure_default_directory(ctx)
        self.assertIn("cd ~/src 2>/dev/null || true", ctx.host.files[BASHRC])

    def test_tmux_autoattach_only_for_ssh(self):
        ctx = user_context()
        configure_tmux_autoattach(ctx)
        content = ctx.host.files[BASHRC]
        self.assertIn('[ -n "$SSH_CONNECTION" ]', content)
        self.assertIn("tmux attach-session -t main", content)


class TestInstallers(unittest.TestCase):
    @patch("devenv.devenv_steps.run", return_value=OK)
    def test_installer_downloaded_then_run(self, mock_run):
        _run_installer(MISE_INSTALL_URL)

        download, execute = [c[0][0] for c in mock_run.call_args_list]
        self.assertEqual(download[:2], ["curl", "-fsSL"])
        self.assertEqual(download[2], MISE_INSTALL_URL)
        self.assertEqual(execute, ["bash", download[4]])
        self.assertFalse(os.path.exists(download[4]))

    @patch("devenv.devenv_steps.run", return_value=OK)
    def test_neovim_extracted_next_to_target(self, mock_run):
        ctx = user_context(nvim_install_dir="/opt/nvim-linux-x86_64")
        install_neovim(ctx)

        commands = [c[0][0] for c in mock_run.call_args_list]
        tar = next(c for c in commands if "tar" in c)
        self.assertIn("/opt/.nvim-linux-x86_64.staging", tar)
        mv = next(c for c in commands if "mv" in c)
        self.assertEqual(mv[-1], "/opt/nvim-linux-x86_64")

    @patch("devenv.devenv_steps.run", return_value=OK)
    def test_neovim_custom_install_dir_moves_archive_root(self, mock_run):
        ctx = user_context(nvim_install_dir="/opt/nvim")
        install_neovim(ctx)

        commands = [c[0][0] for c in mock_run.call_args_list]
        mv = next(c for c in commands if "mv" in c)
        self.assertEqual(mv[-2:], [os.path.join("/opt/.nvim.staging", NVIM_ARCHIVE_ROOT), "/opt/nvim"])
        self.assertEqual(commands[-1][-3:], ["rm", "-rf", "/opt/.nvim.staging"])

    def test_neovim_staging_removed_when_move_fails(self):
        def fail_on_move(cmd, check=True, **kwargs):
            if "mv" in cmd:
                raise subprocess.CalledProcessError(1, cmd)
            return OK

        ctx = user_context(nvim_install_dir="/opt/nvim")
        with patch("devenv.devenv_steps.run", side_effect=fail_on_move) as mock_run:
            with self.assertRaises(subprocess.CalledProcessError):
                install_neovim(ctx)

        last = mock_run.call_args_list[-1]
        self.assertEqual(last[0][0][-3:], ["rm", "-rf", "/opt/.nvim.staging"])
        self.assertEqual(last[1], {"check": False})


    @patch("devenv.devenv_steps.run", return_value=OK)
    def test_lazyvim_backs_up_existing_config(self, mock_run):
        ctx = user_context()
        config_dir = os.path.join(HOME, ".config", "nvim")
        ctx.host.dirs.add(config_dir)
        ctx.host.files[os.path.join(config_dir, "init.lua")] = "-- mine"

        install_lazyvim(ctx)

        backups = [d for d in ctx.host.dirs if d.startswith(f"{config_dir}.backup.")]
        self.assertEqual(len(backups), 1)
        self.assertEqual(ctx.host.files[os.path.join(backups[0], "init.lua")], "-- mine")
        clone = mock_run.call_args[0][0]
        self.assertEqual(clone[:2], ["git", "clone"])
        self.assertEqual(clone[-1], f"{config_dir}.clone")


class FakeUserHost:
    """Patches for the commands user-phase steps run directly."""

    def __init__(self, ctx):
        self.ctx = ctx
        self.host = ctx.host
        self.git_config = {}

    def installer(self, url):
        if url == MISE_INSTALL_URL:
            self.host.mise_available = True
        else:
            self.host.tools.add("claude")

    def run(self, cmd, check=True, **kwargs):
        if cmd[:3] == ["git", "config", "--global"]:
            if len(cmd) == 5:
                self.git_config[cmd[3]] = cmd[4]
                return OK
            return subprocess.CompletedProcess(cmd, 0 if cmd[3] in self.git_config else 1, "", "")
        if cmd[:2] == ["git", "clone"]:
            self.host.files[os.path.join(cmd[-1], "lua", "config", "lazy.lua")] = "-- lazy"
        elif "mv" in cmd:
            self.host.files[os.path.join(cmd[-1], "bin", "nvim")] = ""
        return OK


class TestUserPhase(unittest.TestCase):
    def setUp(self):
        self.ctx = user_context()
        self.fake = FakeUserHost(self.ctx)
        self.runner = StepRunner(self.ctx, quiet_logger(), show_progress=False)
        self.steps = get_steps_for_phase(Phase.USER, self.ctx.config)

        run_patch = patch("devenv.devenv_steps.run", side_effect=self.fake.run)
        installer_patch = patch("devenv.devenv_steps._run_installer", side_effect=self.fake.installer)
        run_patch.start()
        installer_patch.start()
        self.addCleanup(run_patch.stop)
        self.addCleanup(installer_patch.stop)

    def test_first_run_applies_everything(self):
        results = self.runner.run(self.steps)
        failures = {r.name: r.message for r in results if r.status is not StepStatus.APPLIED}
        self.assertEqual(failures, {})
        self.assertEqual(self.ctx.host.runtimes, {"node@lts", "php@latest", "ruby@latest"})
        self.assertEqual(self.fake.git_config, {"user.name": "kuranai", "user.email": "mail@kuranai.de"})

    def test_second_run_skips_everything(self):
        self.runner.run(self.steps)
        bashrc = self.ctx.host.files[BASHRC]

        results = self.runner.run(self.steps)

        self.assertTrue(all(r.status is StepStatus.SKIPPED for r in results))
        self.assertEqual(self.ctx.host.files[BASHRC], bashrc)

    def test_languages_skipped_when_mise_install_fails(self):
        def broken_installer(url):
            raise subprocess.CalledProcessError(22, ["curl", url])

        with patch("devenv.devenv_steps._run_installer", side_effect=broken_installer):
            results = self.runner.run(self.steps)

        by_name = {r.name: r for r in results}
        self.assertEqual(by_name["install_mise"].status, StepStatus.FAILED)
        for name in ("install_node", "install_php", "install_ruby"):
            self.assertEqual(by_name[name].status, StepStatus.SKIPPED)
            self.assertTrue(by_name[name].warning)
        self.assertEqual(by_name["configure_tmux"].status, StepStatus.APPLIED)


if __name__ == '__main__':
    unittest.main()

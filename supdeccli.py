#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Copyright (C) 2024 cibo
This file is part of SUPdec.

SUPdec is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

SUPdec is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with SUPdec.  If not, see <http://www.gnu.org/licenses/>.
"""


from SUPdec import SUPFile, LogFacility, PGSDecodeError
from SUPdec.__metadata__ import __author__, __version__ as LIB_VERSION

import sys
import configparser
from pathlib import Path
from argparse import ArgumentParser, BooleanOptionalAction
from typing import NoReturn

def format_displayset(ds) -> str:
    objects = ', '.join(f"{o_id}:{obj.width}x{obj.height}" for o_id, obj in ds.bitmap_objects.items())
    return (f"{ds.pts:>10d} {ds.composition_state.name:<14} "
            f"W={len(ds.windows)} O={len(ds.composition.cobjects)}/[{objects}] "
            f"P={len(ds.palette)} @{ds.offset}+{ds.size}")

def read_config(config_file: Path) -> dict[str, str]:
    if not config_file.exists():
        return {}
    config = configparser.ConfigParser()
    config.read(config_file)
    if 'SUPdec' not in config:
        return {}
    return dict(config['SUPdec'])

#%% Main code
if __name__ == '__main__':
    logger = LogFacility.get_logger('SUPdec')

    def exit_msg(msg: str, is_error: bool = True) -> NoReturn:
        if msg != '':
            if is_error:
                logger.critical(msg)
            else:
                logger.info(msg)
        sys.exit(is_error)
    ####exit_msg

    parser = ArgumentParser()
    parser.add_argument("-i", "--input", type=str, help="Set input SUP file.", default='', required=True)
    parser.add_argument('--pad-short-rows', help="Flag to pad bitmap rows terminated early with color 0. (def: config.ini or off)", action=BooleanOptionalAction, default=None, required=False)
    parser.add_argument('-e', '--epochs', help="Flag to summarize epochs instead of display sets.", action='store_true', default=False, required=False)
    parser.add_argument('-l', '--log-level', help="Set the logging level. [5: trace, 10: debug, 20: normal, 30: warn/errors] (def: config.ini or 20)", type=int, default=0, required=False)
    parser.add_argument('-f', '--log-file', help="Set a file to also write the log to.", type=str, default='', required=False)
    parser.add_argument('-v', '--version', action='version', version=f"(c) {__author__}, v{LIB_VERSION}")
    args = parser.parse_args()

    application_path = Path(sys.argv[0]).absolute().parent
    ini_opts = read_config(application_path.joinpath('config.ini'))

    if args.pad_short_rows is None:
        args.pad_short_rows = ini_opts.get('pad_short_rows', '0').lower() in ('1', 'true', 'yes', 'on')
    if args.log_level == 0:
        args.log_level = int(ini_opts.get('log_level', 20))
    if not 0 < args.log_level <= 50:
        logger.warning("Meaningless logging level, using 20.")
        args.log_level = 20
    LogFacility.set_logger_level('SUPdec', args.log_level)
    if args.log_file:
        LogFacility.set_file_log(logger, args.log_file, args.log_level)

    if not Path(args.input).exists():
        exit_msg(f"Input file '{args.input}' does not exist.")

    sup = SUPFile(args.input, pad_short_rows=args.pad_short_rows)
    try:
        if args.epochs:
            for k, epoch in enumerate(sup.gen_epochs()):
                print(f"Epoch {k:>4d}: {len(epoch)} display set(s), pts {epoch.t_in} -> {epoch.t_out}")
        else:
            for ds in sup.gen_displaysets():
                print(format_displayset(ds))
    except PGSDecodeError as e:
        exit_msg(f"Decoding failed: {e}")
    exit_msg("Done.", False)
####

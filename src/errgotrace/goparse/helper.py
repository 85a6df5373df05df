from __future__ import annotations

import hashlib


def helper_go_source() -> str:
    # Keep this file stdlib-only so `go build` doesn't need network access.
    return r'''
package main

import (
	"encoding/json"
	"fmt"
	"go/ast"
	"go/parser"
	"go/token"
	"io"
	"os"
	"strconv"
)

type outSpan struct {
	Start int `json:"start"`
	End   int `json:"end"`
}

type outIdent struct {
	Name string  `json:"name"`
	Span outSpan `json:"span"`
}

type outField struct {
	Names    []outIdent `json:"names"`
	Type     outSpan    `json:"type"`
	Variadic bool       `json:"variadic"`
}

type outFieldList struct {
	Span   outSpan    `json:"span"`
	Fields []outField `json:"fields"`
}

type outFunc struct {
	Name       string        `json:"name"`
	Recv       *outFieldList `json:"recv"`
	TypeParams *outFieldList `json:"type_params"`
	Params     *outFieldList `json:"params"`
	Results    *outFieldList `json:"results"`
	Lbrace     int           `json:"lbrace"`
}

type outImport struct {
	Name string `json:"name"`
	Path string `json:"path"`
}

type outFile struct {
	Package    string      `json:"package"`
	PackageEnd int         `json:"package_end"`
	Imports    []outImport `json:"imports"`
	Funcs      []outFunc   `json:"funcs"`
}

func main() {
	filename := "source.go"
	if len(os.Args) > 1 {
		filename = os.Args[1]
	}

	src, err := io.ReadAll(os.Stdin)
	if err != nil {
		fmt.Fprintln(os.Stderr, err)
		os.Exit(1)
	}

	fset := token.NewFileSet()
	f, err := parser.ParseFile(fset, filename, src, parser.ParseComments)
	if err != nil {
		fmt.Fprintln(os.Stderr, err)
		os.Exit(2)
	}

	offset := func(p token.Pos) int {
		return fset.Position(p).Offset
	}
	span := func(n ast.Node) outSpan {
		return outSpan{Start: offset(n.Pos()), End: offset(n.End())}
	}
	fieldList := func(fl *ast.FieldList) *outFieldList {
		if fl == nil {
			return nil
		}
		out := &outFieldList{Span: span(fl), Fields: []outField{}}
		for _, field := range fl.List {
			of := outField{Names: []outIdent{}, Type: span(field.Type)}
			if _, ok := field.Type.(*ast.Ellipsis); ok {
				of.Variadic = true
			}
			for _, n := range field.Names {
				of.Names = append(of.Names, outIdent{Name: n.Name, Span: span(n)})
			}
			out.Fields = append(out.Fields, of)
		}
		return out
	}

	out := outFile{
		Package:    f.Name.Name,
		PackageEnd: offset(f.Name.End()),
		Imports:    []outImport{},
		Funcs:      []outFunc{},
	}

	for _, imp := range f.Imports {
		path, err := strconv.Unquote(imp.Path.Value)
		if err != nil {
			path = imp.Path.Value
		}
		oi := outImport{Path: path}
		if imp.Name != nil {
			oi.Name = imp.Name.Name
		}
		out.Imports = append(out.Imports, oi)
	}

	for _, decl := range f.Decls {
		fd, ok := decl.(*ast.FuncDecl)
		if !ok {
			continue
		}
		of := outFunc{
			Name:       fd.Name.Name,
			Recv:       fieldList(fd.Recv),
			TypeParams: fieldList(fd.Type.TypeParams),
			Params:     fieldList(fd.Type.Params),
			Results:    fieldList(fd.Type.Results),
			Lbrace:     -1,
		}
		if fd.Body != nil {
			of.Lbrace = offset(fd.Body.Lbrace)
		}
		out.Funcs = append(out.Funcs, of)
	}

	if err := json.NewEncoder(os.Stdout).Encode(out); err != nil {
		fmt.Fprintln(os.Stderr, err)
		os.Exit(1)
	}
}
'''


def helper_fingerprint() -> str:
    """Content hash of the helper source, used as its cache key."""
    return hashlib.sha256(helper_go_source().encode("utf-8")).hexdigest()
